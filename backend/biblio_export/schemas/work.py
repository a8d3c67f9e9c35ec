"""Canonical publication metadata aggregate."""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DOI_PATTERN = re.compile(r"^10\.\d{4,9}/\S+$")
DOI_PREFIXES = ("https://doi.org/", "http://doi.org/", "https://dx.doi.org/", "http://dx.doi.org/", "doi:")
ISSN_PATTERN = re.compile(r"^\d{4}-\d{3}[\dX]$")
ORCID_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4}-\d{3}[\dX]$")
CC_LICENSE_PATTERN = re.compile(
    r"^https?://creativecommons\.org/licenses/(?P<kind>by|by-sa|by-nd|by-nc|by-nc-sa|by-nc-nd)/(?:1\.0|2\.0|2\.5|3\.0|4\.0)/$"
)
CC_ZERO_PATTERN = re.compile(r"^https?://creativecommons\.org/publicdomain/zero/1\.0/$")


class WorkType(str, Enum):
    BOOK_CHAPTER = "BOOK_CHAPTER"
    MONOGRAPH = "MONOGRAPH"
    EDITED_BOOK = "EDITED_BOOK"
    TEXTBOOK = "TEXTBOOK"
    JOURNAL_ISSUE = "JOURNAL_ISSUE"
    BOOK_SET = "BOOK_SET"


class WorkStatus(str, Enum):
    UNSPECIFIED = "UNSPECIFIED"
    CANCELLED = "CANCELLED"
    FORTHCOMING = "FORTHCOMING"
    POSTPONED_INDEFINITELY = "POSTPONED_INDEFINITELY"
    ACTIVE = "ACTIVE"
    NO_LONGER_OUR_PRODUCT = "NO_LONGER_OUR_PRODUCT"
    OUT_OF_STOCK_INDEFINITELY = "OUT_OF_STOCK_INDEFINITELY"
    OUT_OF_PRINT = "OUT_OF_PRINT"
    INACTIVE = "INACTIVE"
    UNKNOWN = "UNKNOWN"
    REMAINDERED = "REMAINDERED"
    WITHDRAWN_FROM_SALE = "WITHDRAWN_FROM_SALE"
    RECALLED = "RECALLED"


class ContributionType(str, Enum):
    AUTHOR = "AUTHOR"
    EDITOR = "EDITOR"
    TRANSLATOR = "TRANSLATOR"
    PHOTOGRAPHER = "PHOTOGRAPHER"
    ILLUSTRATOR = "ILLUSTRATOR"
    MUSIC_EDITOR = "MUSIC_EDITOR"
    FOREWORD_BY = "FOREWORD_BY"
    INTRODUCTION_BY = "INTRODUCTION_BY"
    AFTERWORD_BY = "AFTERWORD_BY"
    PREFACE_BY = "PREFACE_BY"


class SubjectType(str, Enum):
    BIC = "BIC"
    BISAC = "BISAC"
    THEMA = "THEMA"
    LCC = "LCC"
    CUSTOM = "CUSTOM"
    KEYWORD = "KEYWORD"


class LanguageRelation(str, Enum):
    ORIGINAL = "ORIGINAL"
    TRANSLATED_FROM = "TRANSLATED_FROM"
    TRANSLATED_INTO = "TRANSLATED_INTO"


class SeriesType(str, Enum):
    JOURNAL = "JOURNAL"
    BOOK_SERIES = "BOOK_SERIES"


class PublicationType(str, Enum):
    PAPERBACK = "PAPERBACK"
    HARDBACK = "HARDBACK"
    PDF = "PDF"
    HTML = "HTML"
    XML = "XML"
    EPUB = "EPUB"
    MOBI = "MOBI"
    AZW3 = "AZW3"
    DOCX = "DOCX"
    FICTION_BOOK = "FICTION_BOOK"


DIGITAL_PUBLICATION_TYPES = frozenset(
    {
        PublicationType.PDF,
        PublicationType.HTML,
        PublicationType.XML,
        PublicationType.EPUB,
        PublicationType.MOBI,
        PublicationType.AZW3,
        PublicationType.DOCX,
        PublicationType.FICTION_BOOK,
    }
)
PRINT_PUBLICATION_TYPES = frozenset({PublicationType.PAPERBACK, PublicationType.HARDBACK})


class LocationPlatform(str, Enum):
    PROJECT_MUSE = "PROJECT_MUSE"
    OAPEN = "OAPEN"
    DOAB = "DOAB"
    JSTOR = "JSTOR"
    EBSCO_HOST = "EBSCO_HOST"
    OCLC_KB = "OCLC_KB"
    PROQUEST_KB = "PROQUEST_KB"
    PROQUEST_EXLIBRIS = "PROQUEST_EXLIBRIS"
    EBSCO_KB = "EBSCO_KB"
    JISC_KB = "JISC_KB"
    GOOGLE_BOOKS = "GOOGLE_BOOKS"
    INTERNET_ARCHIVE = "INTERNET_ARCHIVE"
    SCIENCE_OPEN = "SCIENCE_OPEN"
    SCIELO_BOOKS = "SCIELO_BOOKS"
    PUBLISHER_WEBSITE = "PUBLISHER_WEBSITE"
    OTHER = "OTHER"


class LicenseKind(str, Enum):
    BY = "BY"
    BY_SA = "BY_SA"
    BY_ND = "BY_ND"
    BY_NC = "BY_NC"
    BY_NC_SA = "BY_NC_SA"
    BY_NC_ND = "BY_NC_ND"
    ZERO = "ZERO"
    UNDEFINED = "UNDEFINED"


_CC_KINDS = {
    "by": LicenseKind.BY,
    "by-sa": LicenseKind.BY_SA,
    "by-nd": LicenseKind.BY_ND,
    "by-nc": LicenseKind.BY_NC,
    "by-nc-sa": LicenseKind.BY_NC_SA,
    "by-nc-nd": LicenseKind.BY_NC_ND,
}


def license_kind_of(url: Optional[str]) -> LicenseKind:
    """Classify a licence URL as one of the Creative Commons licences."""
    if not url:
        return LicenseKind.UNDEFINED
    match = CC_LICENSE_PATTERN.match(url.strip())
    if match:
        return _CC_KINDS[match.group("kind")]
    if CC_ZERO_PATTERN.match(url.strip()):
        return LicenseKind.ZERO
    return LicenseKind.UNDEFINED


def normalize_doi(value: Optional[str]) -> Optional[str]:
    """Return the bare ``10.x/y`` form of a DOI, lower-cased prefixes stripped."""
    if value is None:
        return None
    doi = value.strip()
    if not doi:
        return None
    lowered = doi.lower()
    for prefix in DOI_PREFIXES:
        if lowered.startswith(prefix):
            doi = doi[len(prefix):]
            break
    if not DOI_PATTERN.match(doi):
        raise ValueError(f"invalid DOI: {value!r}")
    return doi


def _isbn13_check_digit(digits: str) -> int:
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits[:12]))
    return (10 - total % 10) % 10


def normalize_isbn(value: Optional[str]) -> Optional[str]:
    """Return a 13-digit ISBN without separators, validating its check digit."""
    if value is None:
        return None
    digits = value.replace("-", "").replace(" ", "").strip()
    if not digits:
        return None
    if len(digits) != 13 or not digits.isdigit() or not digits.startswith(("978", "979")):
        raise ValueError(f"invalid ISBN-13: {value!r}")
    if _isbn13_check_digit(digits) != int(digits[-1]):
        raise ValueError(f"invalid ISBN-13 check digit: {value!r}")
    return digits


class CanonicalModel(BaseModel):
    """Base for canonical entities: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Publisher(CanonicalModel):
    publisher_id: UUID
    publisher_name: str
    publisher_shortname: Optional[str] = None
    publisher_url: Optional[str] = None


class Imprint(CanonicalModel):
    imprint_id: UUID
    imprint_name: str
    imprint_url: Optional[str] = None
    publisher: Publisher


class Contribution(CanonicalModel):
    """A contributor's role on a work, ordered by ``contribution_ordinal``."""

    contribution_id: UUID
    contributor_id: UUID
    contribution_type: ContributionType
    first_name: Optional[str] = None
    last_name: str
    full_name: str
    main_contribution: bool = True
    biography: Optional[str] = None
    contribution_ordinal: int = Field(ge=1)
    orcid: Optional[str] = None

    @field_validator("orcid")
    @classmethod
    def _check_orcid(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        orcid = value.strip().removeprefix("https://orcid.org/")
        if not ORCID_PATTERN.match(orcid):
            raise ValueError(f"invalid ORCID: {value!r}")
        return orcid

    @property
    def inverted_name(self) -> str:
        if self.first_name:
            return f"{self.last_name}, {self.first_name}"
        return self.last_name


class Subject(CanonicalModel):
    subject_id: UUID
    subject_type: SubjectType
    subject_code: str
    subject_ordinal: int = Field(ge=1)


class Language(CanonicalModel):
    language_id: UUID
    language_code: str = Field(min_length=3, max_length=3)
    language_relation: LanguageRelation
    main_language: bool = False

    @field_validator("language_code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.upper()


class Series(CanonicalModel):
    series_id: UUID
    series_type: SeriesType
    series_name: str
    issn_print: Optional[str] = None
    issn_digital: Optional[str] = None
    series_url: Optional[str] = None

    @field_validator("issn_print", "issn_digital")
    @classmethod
    def _check_issn(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        issn = value.strip().upper()
        if not ISSN_PATTERN.match(issn):
            raise ValueError(f"invalid ISSN: {value!r}")
        return issn


class Issue(CanonicalModel):
    """Membership of a work in a series."""

    issue_id: UUID
    issue_ordinal: int = Field(ge=1)
    series: Series


class Price(CanonicalModel):
    price_id: UUID
    currency_code: str = Field(min_length=3, max_length=3)
    unit_price: float = Field(ge=0)

    @field_validator("currency_code")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


class Location(CanonicalModel):
    location_id: UUID
    landing_page: Optional[str] = None
    full_text_url: Optional[str] = None
    location_platform: LocationPlatform = LocationPlatform.OTHER
    canonical: bool = False


class Publication(CanonicalModel):
    publication_id: UUID
    publication_type: PublicationType
    isbn: Optional[str] = None
    width_mm: Optional[float] = Field(default=None, ge=0)
    height_mm: Optional[float] = Field(default=None, ge=0)
    depth_mm: Optional[float] = Field(default=None, ge=0)
    weight_g: Optional[float] = Field(default=None, ge=0)
    prices: list[Price] = Field(default_factory=list)
    locations: list[Location] = Field(default_factory=list)

    @field_validator("isbn")
    @classmethod
    def _check_isbn(cls, value: Optional[str]) -> Optional[str]:
        return normalize_isbn(value)

    @property
    def is_digital(self) -> bool:
        return self.publication_type in DIGITAL_PUBLICATION_TYPES

    def canonical_location(self) -> Optional[Location]:
        for location in self.locations:
            if location.canonical:
                return location
        return self.locations[0] if self.locations else None

    def ordered_prices(self) -> list[Price]:
        return sorted(self.prices, key=lambda price: (price.currency_code, price.unit_price))


class Work(CanonicalModel):
    """The canonical aggregate for one publication."""

    work_id: UUID
    work_type: WorkType
    work_status: WorkStatus
    full_title: str
    title: str
    subtitle: Optional[str] = None
    edition: Optional[int] = Field(default=None, ge=1)
    doi: Optional[str] = None
    publication_date: Optional[date] = None
    place: Optional[str] = None
    page_count: Optional[int] = Field(default=None, ge=0)
    long_abstract: Optional[str] = None
    short_abstract: Optional[str] = None
    license: Optional[str] = None
    copyright_holder: Optional[str] = None
    landing_page: Optional[str] = None
    cover_url: Optional[str] = None
    lccn: Optional[str] = None
    oclc: Optional[str] = None
    imprint: Imprint
    contributions: list[Contribution] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    languages: list[Language] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)
    publications: list[Publication] = Field(default_factory=list)
    updated_at_with_relations: Optional[datetime] = None

    @field_validator("doi")
    @classmethod
    def _check_doi(cls, value: Optional[str]) -> Optional[str]:
        return normalize_doi(value)

    @model_validator(mode="after")
    def _check_relations(self) -> "Work":
        seen: set[tuple[SubjectType, str]] = set()
        for subject in self.subjects:
            key = (subject.subject_type, subject.subject_code)
            if key in seen:
                raise ValueError(f"duplicate subject {subject.subject_type.value} {subject.subject_code!r}")
            seen.add(key)
        originals = [
            language
            for language in self.languages
            if language.main_language and language.language_relation == LanguageRelation.ORIGINAL
        ]
        if len(originals) > 1:
            raise ValueError("at most one main language may have relation ORIGINAL")
        return self

    # ------------------------------------------------------------------ helpers
    @property
    def publisher(self) -> Publisher:
        return self.imprint.publisher

    @property
    def doi_url(self) -> Optional[str]:
        return f"https://doi.org/{self.doi}" if self.doi else None

    @property
    def publication_year(self) -> Optional[int]:
        return self.publication_date.year if self.publication_date else None

    def license_kind(self) -> LicenseKind:
        return license_kind_of(self.license)

    def ordered_contributions(self) -> list[Contribution]:
        return sorted(self.contributions, key=lambda c: (c.contribution_ordinal, str(c.contribution_id)))

    def contributions_of(self, *types: ContributionType) -> list[Contribution]:
        return [c for c in self.ordered_contributions() if c.contribution_type in types]

    def ordered_subjects(self) -> list[Subject]:
        return sorted(
            self.subjects,
            key=lambda s: (s.subject_type.value, s.subject_ordinal, s.subject_code),
        )

    def subjects_of(self, *types: SubjectType) -> list[Subject]:
        return [s for s in self.ordered_subjects() if s.subject_type in types]

    def ordered_languages(self) -> list[Language]:
        return sorted(
            self.languages,
            key=lambda lang: (not lang.main_language, lang.language_relation.value, lang.language_code),
        )

    def main_language(self) -> Optional[Language]:
        """The language flagged as main, if any."""
        return next((lang for lang in self.ordered_languages() if lang.main_language), None)

    def ordered_issues(self) -> list[Issue]:
        return sorted(self.issues, key=lambda i: (i.series.series_name, i.issue_ordinal))

    def ordered_publications(self) -> list[Publication]:
        order = list(PublicationType)
        return sorted(
            self.publications,
            key=lambda p: (order.index(p.publication_type), p.isbn or "", str(p.publication_id)),
        )

    def publication_of(self, *types: PublicationType) -> Optional[Publication]:
        """First publication matching ``types``, honouring the order they are given in."""
        for publication_type in types:
            for publication in self.ordered_publications():
                if publication.publication_type == publication_type:
                    return publication
        return None

    def isbns(self, types: Iterable[PublicationType]) -> list[str]:
        wanted = set(types)
        return [p.isbn for p in self.ordered_publications() if p.isbn and p.publication_type in wanted]

    def pdf_url(self) -> Optional[str]:
        pdf = self.publication_of(PublicationType.PDF)
        if not pdf:
            return None
        location = pdf.canonical_location()
        return location.full_text_url if location else None
