"""CSV encoder: one row per work."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from ..schemas.work import Work
from . import contracts as req
from .base import Encoder, format_amount

CONTRACT = req.contract(req.WORK_ID, req.TITLE)

COLUMNS = (
    "publisher",
    "imprint",
    "work_type",
    "work_status",
    "title",
    "subtitle",
    "edition",
    "doi",
    "publication_date",
    "publication_place",
    "license",
    "copyright_holder",
    "landing_page",
    "page_count",
    "long_abstract",
    "short_abstract",
    "cover_url",
    "lccn",
    "oclc",
    "contributions",
    "publications",
    "series",
    "languages",
    "subjects",
    "work_id",
)

MULTI_VALUE_SEPARATOR = "; "


def _join(values: list[str]) -> str:
    return MULTI_VALUE_SEPARATOR.join(values)


def _contributions(work: Work) -> str:
    entries = []
    for contribution in work.ordered_contributions():
        entry = f"[{contribution.contribution_type.value}] {contribution.full_name}"
        if contribution.orcid:
            entry += f" ({contribution.orcid})"
        entries.append(entry)
    return _join(entries)


def _publications(work: Work) -> str:
    entries = []
    for publication in work.ordered_publications():
        entry = f"[{publication.publication_type.value}]"
        if publication.isbn:
            entry += f" {publication.isbn}"
        prices = ", ".join(f"{p.currency_code} {format_amount(p.unit_price)}" for p in publication.ordered_prices())
        if prices:
            entry += f" ({prices})"
        entries.append(entry)
    return _join(entries)


def _series(work: Work) -> str:
    entries = []
    for issue in work.ordered_issues():
        series = issue.series
        issns = ", ".join(issn for issn in (series.issn_print, series.issn_digital) if issn)
        entry = f"{series.series_name} ({issns})" if issns else series.series_name
        entries.append(f"{entry} [{issue.issue_ordinal}]")
    return _join(entries)


def _row(work: Work) -> list[str]:
    values = {
        "publisher": work.publisher.publisher_name,
        "imprint": work.imprint.imprint_name,
        "work_type": work.work_type.value,
        "work_status": work.work_status.value,
        "title": work.title,
        "subtitle": work.subtitle,
        "edition": work.edition,
        "doi": work.doi,
        "publication_date": work.publication_date.isoformat() if work.publication_date else None,
        "publication_place": work.place,
        "license": work.license,
        "copyright_holder": work.copyright_holder,
        "landing_page": work.landing_page,
        "page_count": work.page_count,
        "long_abstract": work.long_abstract,
        "short_abstract": work.short_abstract,
        "cover_url": work.cover_url,
        "lccn": work.lccn,
        "oclc": work.oclc,
        "contributions": _contributions(work),
        "publications": _publications(work),
        "series": _series(work),
        "languages": _join(
            [f"{lang.language_code} ({lang.language_relation.value})" for lang in work.ordered_languages()]
        ),
        "subjects": _join(
            [f"[{s.subject_type.value}] {s.subject_code}" for s in work.ordered_subjects()]
        ),
        "work_id": str(work.work_id),
    }
    return ["" if values[column] is None else str(values[column]) for column in COLUMNS]


class CsvEncoder(Encoder):
    def render_work(self, work: Work) -> list[str]:
        return _row(work)

    def assemble(self, fragments: list[list[str]], works: Sequence[Work]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(COLUMNS)
        writer.writerows(fragments)
        return buffer.getvalue().encode("utf-8")
