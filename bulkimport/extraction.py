from collections.abc import Mapping
from dataclasses import dataclass


Record = Mapping[str, object]


@dataclass(frozen=True)
class WholeRecord:
    def extract(self, item: object) -> Record | None:
        if isinstance(item, Mapping):
            return item
        return None


@dataclass(frozen=True)
class NestedElement:
    key: str

    def extract(self, item: object) -> Record | None:
        if not isinstance(item, Mapping):
            return None
        nested = item.get(self.key)
        if isinstance(nested, Mapping):
            return nested
        return None


ExtractionPolicy = WholeRecord | NestedElement


def resolve_extraction(element_key: str | None) -> ExtractionPolicy:
    if element_key:
        return NestedElement(element_key)
    return WholeRecord()
