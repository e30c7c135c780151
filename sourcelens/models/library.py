"""Library item kinds and their storage locations."""

from __future__ import annotations

from enum import Enum

from sourcelens.errors import RequestValidationFailed


class LibraryKind(Enum):
    REFERENCES = "references"
    ANALYSES = "analyses"
    SOURCES = "sources"
    DRAFTS = "drafts"

    @property
    def table(self) -> str:
        return self.value

    @property
    def local_key(self) -> str:
        return LOCAL_STORAGE_KEYS[self]

    @classmethod
    def parse(cls, value: str | None) -> LibraryKind:
        if not value:
            raise RequestValidationFailed("Missing data type parameter")
        try:
            return cls(value)
        except ValueError:
            raise RequestValidationFailed(f"Unknown storage key: {value}") from None


LOCAL_STORAGE_KEYS: dict[LibraryKind, str] = {
    LibraryKind.REFERENCES: "sourceLens_savedReferences",
    LibraryKind.ANALYSES: "sourceLens_savedAnalyses",
    LibraryKind.SOURCES: "sourceLens_savedSources",
    LibraryKind.DRAFTS: "sourceLens_savedDrafts",
}
