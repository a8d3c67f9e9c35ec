"""MARC 21 bibliographic records in ISO 2709, MARCMaker and MARCXML form.

A :class:`pymarc.Record` is built once per work by :func:`build_record`; the
three encoders only differ in how pymarc serialises it.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional, Sequence

from pymarc import Field, Record, Subfield, record_to_xml_node

from ..schemas.work import (
    ContributionType,
    LicenseKind,
    PublicationType,
    SubjectType,
    Work,
)
from . import contracts as req
from .base import Encoder, InvalidFieldError, clean_text, serialize_xml
from .vocabulary import VocabularyTable

MARCXML_NAMESPACE = "http://www.loc.gov/MARC21/slim"

# leader/09 "a": UCS/Unicode, which pymarc writes as UTF-8
LEADER = "00000nam a2200000 i 4500"
MAX_FIELD_LENGTH = 9999
MAX_RECORD_LENGTH = 99999

CONTRACT = req.contract(req.TITLE, req.PUBLICATION_DATE, req.PUBLISHER)

# Work field reported when a MARC field outgrows the ISO 2709 directory
FIELD_SOURCES = {
    "100": "contributions",
    "700": "contributions",
    "245": "title",
    "264": "place",
    "490": "issues",
    "520": "long_abstract",
    "540": "license",
    "653": "subjects",
    "856": "landing_page",
}

# Relator term and code; anything else is a generic contributor
RELATOR = VocabularyTable(
    "marc21.relator",
    ContributionType,
    {
        ContributionType.AUTHOR: "author|aut",
        ContributionType.EDITOR: "editor|edt",
        ContributionType.TRANSLATOR: "translator|trl",
        ContributionType.PHOTOGRAPHER: "photographer|pht",
        ContributionType.ILLUSTRATOR: "illustrator|ill",
        ContributionType.FOREWORD_BY: "author of introduction, etc.|aui",
        ContributionType.INTRODUCTION_BY: "author of introduction, etc.|aui",
        ContributionType.AFTERWORD_BY: "author of afterword, colophon, etc.|aft",
    },
    fallback="contributor|ctb",
)

SUBJECT_SOURCE = VocabularyTable(
    "marc21.subject_source",
    SubjectType,
    {
        SubjectType.BIC: "bicssc",
        SubjectType.BISAC: "bisacsh",
        SubjectType.THEMA: "thema",
        SubjectType.LCC: None,
        SubjectType.KEYWORD: None,
        SubjectType.CUSTOM: None,
    },
)

CARRIER_QUALIFIER = VocabularyTable(
    "marc21.isbn_qualifier",
    PublicationType,
    {
        PublicationType.PAPERBACK: "paperback",
        PublicationType.HARDBACK: "hardback",
        PublicationType.PDF: "PDF",
        PublicationType.EPUB: "EPUB",
        PublicationType.HTML: "HTML",
        PublicationType.XML: "XML",
        PublicationType.MOBI: "Mobipocket",
        PublicationType.AZW3: "Kindle",
        PublicationType.DOCX: "DOCX",
        PublicationType.FICTION_BOOK: "FictionBook",
    },
)

# MARCMaker reserves these characters in variable fields
MARKUP_ESCAPES = str.maketrans({"$": "{dollar}", "{": "{lcub}", "}": "{rcub}"})


class _FieldList:
    """Collects fields, skipping empty subfield values and data fields left empty."""

    def __init__(self) -> None:
        self.fields: list[Field] = []

    def control(self, tag: str, value: str) -> None:
        self.fields.append(Field(tag=tag, data=value))

    def data(self, tag: str, indicators: str, *subfields: tuple[str, Optional[object]]) -> None:
        kept = [
            Subfield(code=code, value=clean_text(value))
            for code, value in subfields
            if value is not None and str(value) != ""
        ]
        if kept:
            self.fields.append(Field(tag=tag, indicators=list(indicators), subfields=kept))

    def record(self) -> Record:
        record = Record(leader=LEADER, force_utf8=True)
        # sorted() is stable, so repeated tags keep insertion order
        record.add_field(*sorted(self.fields, key=lambda f: f.tag))
        return record


def _fixed_length_data(work: Work) -> str:
    entered = work.updated_at_with_relations or work.publication_date
    entered_on = entered.strftime("%y%m%d") if entered else "000000"
    year = f"{work.publication_year:04d}" if work.publication_year else "    "
    language = work.main_language() or next(iter(work.ordered_languages()), None)
    language_code = language.language_code.lower() if language else "und"
    value = (
        entered_on          # 00-05 date entered
        + "s"               # 06 single known date
        + year              # 07-10
        + "    "            # 11-14
        + "xx "             # 15-17 place unknown
        + "    "            # 18-21 illustrations
        + " "               # 22 audience
        + "o"               # 23 online
        + "    "            # 24-27 nature of contents
        + "0"               # 28 government publication
        + "0"               # 29 conference
        + "0"               # 30 festschrift
        + "0"               # 31 index
        + " "               # 32
        + "0"               # 33 literary form
        + " "               # 34 biography
        + language_code     # 35-37
        + " "               # 38 modified record
        + "d"               # 39 cataloguing source
    )
    return value


def _statement_of_responsibility(work: Work) -> Optional[str]:
    names = [c.full_name for c in work.contributions_of(ContributionType.AUTHOR)]
    if names:
        return ", ".join(names)
    editors = [c.full_name for c in work.contributions_of(ContributionType.EDITOR)]
    if editors:
        return f"edited by {', '.join(editors)}"
    return None


def build_record(work: Work) -> Record:
    fields = _FieldList()
    fields.control("001", str(work.work_id))
    fields.control("006", "m     o  d        ")
    fields.control("007", "cr |n|||||||||")
    fields.control("008", _fixed_length_data(work))

    for publication in work.ordered_publications():
        if publication.isbn:
            qualifier = CARRIER_QUALIFIER.translate(publication.publication_type, "publication_type")
            fields.data("020", "  ", ("a", publication.isbn), ("q", qualifier))
    if work.doi:
        fields.data("024", "7 ", ("a", work.doi), ("2", "doi"))
    if work.lccn:
        fields.data("010", "  ", ("a", work.lccn))
    if work.oclc:
        fields.data("035", "  ", ("a", f"(OCoLC){work.oclc}"))
    languages = work.ordered_languages()
    if len(languages) > 1:
        fields.data("041", "0 ", *(("a", language.language_code.lower()) for language in languages))
    for subject in work.subjects_of(SubjectType.LCC):
        fields.data("050", " 4", ("a", subject.subject_code))
    for subject in work.ordered_subjects():
        source = SUBJECT_SOURCE.translate(subject.subject_type, "subject_type")
        if source:
            fields.data("072", " 7", ("a", subject.subject_code), ("2", source))

    contributions = work.ordered_contributions()
    for position, contribution in enumerate(contributions):
        term, code = RELATOR.translate(contribution.contribution_type, "contribution_type").split("|")
        tag = "100" if position == 0 else "700"
        fields.data(tag, "1 ", ("a", contribution.inverted_name), ("e", term), ("4", code))

    title_indicator = "1" if contributions else "0"
    fields.data(
        "245",
        f"{title_indicator}0",
        ("a", work.title),
        ("b", work.subtitle),
        ("c", _statement_of_responsibility(work)),
    )
    if work.edition:
        fields.data("250", "  ", ("a", f"Edition {work.edition}"))
    fields.data("264", " 1", ("a", work.place), ("b", work.publisher.publisher_name), ("c", work.publication_year))
    if work.page_count:
        fields.data("300", "  ", ("a", f"1 online resource ({work.page_count} pages)"))
    else:
        fields.data("300", "  ", ("a", "1 online resource"))
    fields.data("336", "  ", ("a", "text"), ("b", "txt"), ("2", "rdacontent"))
    fields.data("337", "  ", ("a", "computer"), ("b", "c"), ("2", "rdamedia"))
    fields.data("338", "  ", ("a", "online resource"), ("b", "cr"), ("2", "rdacarrier"))
    for issue in work.ordered_issues():
        fields.data(
            "490",
            "0 ",
            ("a", issue.series.series_name),
            ("x", issue.series.issn_digital or issue.series.issn_print),
            ("v", issue.issue_ordinal),
        )
    if work.license_kind() != LicenseKind.UNDEFINED:
        fields.data("506", "0 ", ("a", "Open Access"), ("f", "Unrestricted online access"), ("2", "star"))
    if work.long_abstract:
        fields.data("520", "  ", ("a", work.long_abstract))
    if work.license:
        fields.data("540", "  ", ("a", "The text of this book is licensed under"), ("u", work.license))
    for subject in work.subjects_of(SubjectType.KEYWORD):
        fields.data("653", "  ", ("a", subject.subject_code))
    for url, note in ((work.doi_url, "Connect to e-book"), (work.landing_page, "Publisher's website")):
        if url:
            fields.data("856", "40", ("u", url), ("z", note))
    return fields.record()


# ---------------------------------------------------------------------- writers
def to_iso2709(record: Record) -> bytes:
    """Binary interchange form; refuses records the directory's lengths cannot describe."""
    sizes = [(len(f.as_marc("utf-8")), f.tag) for f in record.fields]
    for size, tag in sizes:
        if size > MAX_FIELD_LENGTH:
            raise InvalidFieldError(FIELD_SOURCES.get(tag, tag), f"MARC field {tag} is {size} bytes long")
    data = record.as_marc()
    if len(data) > MAX_RECORD_LENGTH:
        _, tag = max(sizes)
        raise InvalidFieldError(FIELD_SOURCES.get(tag, tag), f"MARC record is {len(data)} bytes long")
    return data


def to_markup(record: Record) -> str:
    """MARCMaker mnemonic form; reserved characters in subfields become mnemonics."""
    escaped = Record(leader=str(record.leader), force_utf8=True)
    for original in record.fields:
        if original.is_control_field():
            escaped.add_field(original)
            continue
        escaped.add_field(
            Field(
                tag=original.tag,
                indicators=list(original.indicators),
                subfields=[Subfield(s.code, s.value.translate(MARKUP_ESCAPES)) for s in original.subfields],
            )
        )
    return str(escaped)


def to_marcxml(record: Record) -> ET.Element:
    return record_to_xml_node(record)


class Marc21RecordEncoder(Encoder):
    def render_work(self, work: Work) -> bytes:
        return to_iso2709(build_record(work))

    def assemble(self, fragments: list[bytes], works: Sequence[Work]) -> bytes:
        return b"".join(fragments)


class Marc21MarkupEncoder(Encoder):
    def render_work(self, work: Work) -> str:
        return to_markup(build_record(work))

    def assemble(self, fragments: list[str], works: Sequence[Work]) -> bytes:
        return "\n".join(fragments).encode("utf-8")


class Marc21XmlEncoder(Encoder):
    def render_work(self, work: Work) -> ET.Element:
        return to_marcxml(build_record(work))

    def assemble(self, fragments: list[ET.Element], works: Sequence[Work]) -> bytes:
        root = ET.Element("collection", {"xmlns": MARCXML_NAMESPACE})
        root.extend(fragments)
        return serialize_xml(root)
