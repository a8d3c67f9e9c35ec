"""Mandatory-field contracts checked before a work is rendered."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..schemas.work import (
    DIGITAL_PUBLICATION_TYPES,
    ContributionType,
    LicenseKind,
    PublicationType,
    SubjectType,
    Work,
)


@dataclass(frozen=True, slots=True)
class Requirement:
    field: str
    check: Callable[[Work], bool]


@dataclass(frozen=True, slots=True)
class Contract:
    requirements: tuple[Requirement, ...]

    def missing_fields(self, work: Work) -> tuple[str, ...]:
        return tuple(req.field for req in self.requirements if not req.check(work))

    def fields(self) -> tuple[str, ...]:
        return tuple(req.field for req in self.requirements)


def _has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


WORK_ID = Requirement("work_id", lambda w: w.work_id is not None)
TITLE = Requirement("title", lambda w: _has_text(w.title))
DOI = Requirement("doi", lambda w: _has_text(w.doi))
PUBLICATION_DATE = Requirement("publication_date", lambda w: w.publication_date is not None)
LANDING_PAGE = Requirement("landing_page", lambda w: _has_text(w.landing_page))
LONG_ABSTRACT = Requirement("long_abstract", lambda w: _has_text(w.long_abstract))
LICENSE = Requirement("license", lambda w: w.license_kind() != LicenseKind.UNDEFINED)
PUBLISHER = Requirement("publisher", lambda w: _has_text(w.publisher.publisher_name))
COVER_URL = Requirement("cover_url", lambda w: _has_text(w.cover_url))
LANGUAGE = Requirement("language", lambda w: bool(w.languages))
AUTHOR = Requirement("author", lambda w: bool(w.contributions_of(ContributionType.AUTHOR)))
AUTHOR_OR_EDITOR = Requirement(
    "author_or_editor",
    lambda w: bool(w.contributions_of(ContributionType.AUTHOR, ContributionType.EDITOR)),
)
BIC_OR_BISAC_SUBJECT = Requirement(
    "bic_or_bisac_subject",
    lambda w: bool(w.subjects_of(SubjectType.BIC, SubjectType.BISAC)),
)
BISAC_SUBJECT = Requirement("bisac_subject", lambda w: bool(w.subjects_of(SubjectType.BISAC)))
PDF_URL = Requirement("pdf_url", lambda w: _has_text(w.pdf_url()))
DIGITAL_ISBN = Requirement("digital_isbn", lambda w: bool(w.isbns(DIGITAL_PUBLICATION_TYPES)))
PRICE = Requirement(
    "price",
    lambda w: any(p.prices for p in w.publications if p.publication_type in DIGITAL_PUBLICATION_TYPES),
)


def publication_of(*types: PublicationType) -> Requirement:
    """The work must carry at least one publication of the given types."""
    return Requirement("publication", lambda w: w.publication_of(*types) is not None)


def contract(*requirements: Requirement) -> Contract:
    return Contract(tuple(requirements))
