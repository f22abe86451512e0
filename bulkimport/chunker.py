from collections.abc import Iterable, Iterator
from itertools import islice

from bulkimport.errors import ConfigurationError
from bulkimport.schemas import Chunk


STATEMENT_SEPARATOR = "\n"


def _groups(statements: Iterable[str], size: int) -> Iterator[list[str]]:
    it = iter(statements)
    while True:
        group = list(islice(it, size))
        if not group:
            return
        yield group


def chunk_statements(statements: Iterable[str], chunk_size: int) -> list[Chunk]:
    if chunk_size <= 0:
        raise ConfigurationError(f"chunk size must be a positive integer, got {chunk_size}")

    return [
        Chunk(text=STATEMENT_SEPARATOR.join(group), size=len(group))
        for group in _groups(statements, chunk_size)
    ]
