class ConfigurationError(ValueError):
    """Raised before any statement executes when the run is misconfigured."""


class UnknownColumnError(ConfigurationError):
    def __init__(self, column: str, record_index: int) -> None:
        super().__init__(f"column '{column}' does not exist in record {record_index}")
        self.column = column
        self.record_index = record_index


class NoStatementsError(ConfigurationError):
    pass


class ConnectionFailedError(RuntimeError):
    pass
