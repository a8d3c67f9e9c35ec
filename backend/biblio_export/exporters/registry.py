"""Dialect registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from ..core.errors import UnsupportedDialectError
from ..schemas.request import SPECIFICATION_SEPARATOR, Dialect, FormatFamily
from . import bibtex, csv, doideposit, json, kbart, marc21, onix3, onix21
from .base import Encoder
from .contracts import Contract

if TYPE_CHECKING:
    from ..core.config import Settings

XML = "text/xml; charset=utf-8"


class DuplicateDialectError(ValueError):
    """Two descriptors claim the same (family, dialect) pair."""


@dataclass(frozen=True)
class DialectDescriptor:
    family: FormatFamily
    dialect: Dialect
    content_type: str
    contract: Contract
    encoder: Encoder
    file_extension: str

    @property
    def specification(self) -> str:
        return f"{self.family.value}{SPECIFICATION_SEPARATOR}{self.dialect.value}"


class DialectRegistry:
    """Resolves encoders by (family, dialect).

    The set of dialects is fixed at construction; lookups never mutate it.
    """

    def __init__(self, descriptors: Iterable[DialectDescriptor]) -> None:
        self._registry: dict[tuple[str, str], DialectDescriptor] = {}
        for descriptor in descriptors:
            key = (descriptor.family.value, descriptor.dialect.value)
            if key in self._registry:
                raise DuplicateDialectError(f"Dialect registered twice: {descriptor.specification}")
            self._registry[key] = descriptor

    def resolve(self, family: str, dialect: str) -> DialectDescriptor:
        descriptor = self._registry.get((family, dialect))
        if descriptor is None:
            raise UnsupportedDialectError(family, dialect)
        return descriptor

    def resolve_specification(self, specification: str) -> DialectDescriptor:
        family, _, dialect = specification.partition(SPECIFICATION_SEPARATOR)
        return self.resolve(family, dialect)

    def descriptors(self) -> list[DialectDescriptor]:
        return sorted(self._registry.values(), key=lambda d: d.specification)

    def __contains__(self, specification: object) -> bool:
        if not isinstance(specification, str):
            return False
        family, _, dialect = specification.partition(SPECIFICATION_SEPARATOR)
        return (family, dialect) in self._registry

    def __len__(self) -> int:
        return len(self._registry)


def build_registry(settings: Settings) -> DialectRegistry:
    """Register every supported dialect."""
    descriptors = [
        DialectDescriptor(
            family=FormatFamily.ONIX_3_0,
            dialect=profile.dialect,
            content_type=XML,
            contract=profile.contract,
            encoder=onix3.Onix3Encoder(profile),
            file_extension="xml",
        )
        for profile in onix3.PROFILES.values()
    ]
    descriptors.extend(
        DialectDescriptor(
            family=FormatFamily.ONIX_2_1,
            dialect=profile.dialect,
            content_type=XML,
            contract=profile.contract,
            encoder=onix21.Onix21Encoder(profile),
            file_extension="xml",
        )
        for profile in onix21.PROFILES.values()
    )
    descriptors.extend(
        [
            DialectDescriptor(
                family=FormatFamily.MARC21_RECORD,
                dialect=Dialect.THOTH,
                content_type="application/marc",
                contract=marc21.CONTRACT,
                encoder=marc21.Marc21RecordEncoder(),
                file_extension="mrc",
            ),
            DialectDescriptor(
                family=FormatFamily.MARC21_MARKUP,
                dialect=Dialect.THOTH,
                content_type="text/plain; charset=utf-8",
                contract=marc21.CONTRACT,
                encoder=marc21.Marc21MarkupEncoder(),
                file_extension="mrk",
            ),
            DialectDescriptor(
                family=FormatFamily.MARC21_XML,
                dialect=Dialect.THOTH,
                content_type=XML,
                contract=marc21.CONTRACT,
                encoder=marc21.Marc21XmlEncoder(),
                file_extension="xml",
            ),
            DialectDescriptor(
                family=FormatFamily.CSV,
                dialect=Dialect.THOTH,
                content_type="text/csv; charset=utf-8",
                contract=csv.CONTRACT,
                encoder=csv.CsvEncoder(),
                file_extension="csv",
            ),
            DialectDescriptor(
                family=FormatFamily.JSON,
                dialect=Dialect.THOTH,
                content_type="application/json",
                contract=json.CONTRACT,
                encoder=json.JsonEncoder(),
                file_extension="json",
            ),
            DialectDescriptor(
                family=FormatFamily.KBART,
                dialect=Dialect.OCLC,
                content_type="text/tab-separated-values; charset=utf-8",
                contract=kbart.CONTRACT,
                encoder=kbart.KbartEncoder(),
                file_extension="tsv",
            ),
            DialectDescriptor(
                family=FormatFamily.BIBTEX,
                dialect=Dialect.THOTH,
                content_type="text/plain; charset=utf-8",
                contract=bibtex.CONTRACT,
                encoder=bibtex.BibtexEncoder(),
                file_extension="bib",
            ),
            DialectDescriptor(
                family=FormatFamily.DOI_DEPOSIT,
                dialect=Dialect.CROSSREF,
                content_type=XML,
                contract=doideposit.CONTRACT,
                encoder=doideposit.CrossrefDepositEncoder(
                    depositor_name=settings.crossref_depositor_name,
                    depositor_email=settings.crossref_depositor_email,
                ),
                file_extension="xml",
            ),
        ]
    )
    return DialectRegistry(descriptors)
