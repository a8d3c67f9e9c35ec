"""Controlled vocabulary translation tables."""

from __future__ import annotations

from enum import Enum
from typing import Generic, Iterable, Mapping, Optional, TypeVar

E = TypeVar("E", bound=Enum)

_REJECTED = object()


class IncompleteVocabularyError(ValueError):
    """A table leaves canonical values unmapped and declares no fallback."""


class UnmappedVocabularyError(LookupError):
    def __init__(self, table: str, field: str, value: object) -> None:
        super().__init__(f"{table}: no code for {field}={value!r}")
        self.table = table
        self.field = field
        self.value = value


class VocabularyTable(Generic[E]):
    """Exhaustive mapping from a canonical enum to one dialect's codes.

    ``None`` values mark variants the dialect deliberately leaves out.
    Variants listed as rejected cannot be expressed at all and fail translation.
    """

    def __init__(
        self,
        name: str,
        enum: type[E],
        mapping: Mapping[E, Optional[str]],
        fallback: Optional[str] = None,
        rejected: Iterable[E] = (),
    ) -> None:
        self.name = name
        self.enum = enum
        self.fallback = fallback
        self._mapping: dict[E, object] = dict(mapping)
        for value in rejected:
            if value in self._mapping:
                raise IncompleteVocabularyError(f"{name}: {value!r} both mapped and rejected")
            self._mapping[value] = _REJECTED
        if fallback is None:
            missing = [member.name for member in enum if member not in self._mapping]
            if missing:
                raise IncompleteVocabularyError(f"{name}: no mapping for {', '.join(missing)}")

    def translate(self, value: E, field: str) -> Optional[str]:
        code = self._mapping.get(value, self.fallback)
        if code is _REJECTED or (code is None and value not in self._mapping):
            raise UnmappedVocabularyError(self.name, field, value.value if isinstance(value, Enum) else value)
        return code  # type: ignore[return-value]
