"""Export request and result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union
from uuid import UUID

SPECIFICATION_SEPARATOR = "::"


class FormatFamily(str, Enum):
    ONIX_3_0 = "onix_3.0"
    ONIX_2_1 = "onix_2.1"
    MARC21_RECORD = "marc21record"
    MARC21_MARKUP = "marc21markup"
    MARC21_XML = "marc21xml"
    CSV = "csv"
    JSON = "json"
    KBART = "kbart"
    BIBTEX = "bibtex"
    DOI_DEPOSIT = "doideposit"


class Dialect(str, Enum):
    THOTH = "thoth"
    PROJECT_MUSE = "project_muse"
    OAPEN = "oapen"
    JSTOR = "jstor"
    GOOGLE_BOOKS = "google_books"
    OVERDRIVE = "overdrive"
    EBSCO_HOST = "ebsco_host"
    PROQUEST_EBRARY = "proquest_ebrary"
    OCLC = "oclc"
    CROSSREF = "crossref"


@dataclass(frozen=True, slots=True)
class WorkSelector:
    work_id: UUID

    def describe(self) -> str:
        return f"work {self.work_id}"


@dataclass(frozen=True, slots=True)
class PublisherSelector:
    publisher_ids: tuple[UUID, ...]
    limit: int = 100
    offset: int = 0

    def __post_init__(self) -> None:
        if not self.publisher_ids:
            raise ValueError("at least one publisher is required")
        if self.limit < 1:
            raise ValueError("limit must be positive")
        if self.offset < 0:
            raise ValueError("offset must not be negative")

    def describe(self) -> str:
        publishers = ",".join(str(p) for p in self.publisher_ids)
        return f"publisher(s) {publishers} [offset={self.offset}, limit={self.limit}]"


Selector = Union[WorkSelector, PublisherSelector]


@dataclass(frozen=True, slots=True)
class ExportRequest:
    """What to export and in which (family, dialect).

    Family and dialect stay raw strings: unknown tags are reported by the
    registry, not by request construction.
    """

    family: str
    dialect: str
    selector: Selector

    @classmethod
    def parse(cls, specification: str, selector: Selector) -> "ExportRequest":
        family, _, dialect = specification.partition(SPECIFICATION_SEPARATOR)
        return cls(family=family, dialect=dialect, selector=selector)

    @property
    def specification(self) -> str:
        return f"{self.family}{SPECIFICATION_SEPARATOR}{self.dialect}"

    @property
    def is_collection(self) -> bool:
        return isinstance(self.selector, PublisherSelector)


@dataclass(slots=True)
class EncodedOutput:
    content: bytes
    content_type: str
    request: ExportRequest
    filename: str
    last_modified: Optional[datetime] = field(default=None)
