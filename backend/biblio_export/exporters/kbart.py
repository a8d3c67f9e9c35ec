"""KBART Phase II title lists for knowledge bases."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from ..schemas.work import (
    DIGITAL_PUBLICATION_TYPES,
    PRINT_PUBLICATION_TYPES,
    ContributionType,
    LicenseKind,
    Work,
    WorkType,
)
from . import contracts as req
from .base import Encoder
from .vocabulary import VocabularyTable

CONTRACT = req.contract(req.TITLE, req.LANDING_PAGE, req.PUBLICATION_DATE)

COLUMNS = (
    "publication_title",
    "print_identifier",
    "online_identifier",
    "date_first_issue_online",
    "num_first_vol_online",
    "num_first_issue_online",
    "date_last_issue_online",
    "num_last_vol_online",
    "num_last_issue_online",
    "title_url",
    "first_author",
    "title_id",
    "embargo_info",
    "coverage_depth",
    "notes",
    "publisher_name",
    "publication_type",
    "date_monograph_published_print",
    "date_monograph_published_online",
    "monograph_volume",
    "monograph_edition",
    "first_editor",
    "parent_publication_title_id",
    "preceding_publication_title_id",
    "access_type",
)

# Chapters and journal issues are serial content, not KBART monographs
PUBLICATION_TYPE = VocabularyTable(
    "kbart.publication_type",
    WorkType,
    {
        WorkType.MONOGRAPH: "monograph",
        WorkType.EDITED_BOOK: "monograph",
        WorkType.TEXTBOOK: "monograph",
        WorkType.BOOK_SET: "monograph",
    },
    rejected=(WorkType.BOOK_CHAPTER, WorkType.JOURNAL_ISSUE),
)

_WHITESPACE = re.compile(r"[\t\r\n]+")


def _clean(value: Optional[object]) -> str:
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip()


def _first_surname(work: Work, contribution_type: ContributionType) -> Optional[str]:
    contributions = work.contributions_of(contribution_type)
    return contributions[0].last_name if contributions else None


class KbartEncoder(Encoder):
    def render_work(self, work: Work) -> list[str]:
        print_isbns = work.isbns(PRINT_PUBLICATION_TYPES)
        online_isbns = work.isbns(DIGITAL_PUBLICATION_TYPES)
        issues = work.ordered_issues()
        published = work.publication_date.isoformat() if work.publication_date else None
        values = {
            "publication_title": work.full_title,
            "print_identifier": print_isbns[0] if print_isbns else None,
            "online_identifier": online_isbns[0] if online_isbns else None,
            "title_url": work.landing_page,
            "first_author": _first_surname(work, ContributionType.AUTHOR),
            "title_id": work.doi or str(work.work_id),
            "coverage_depth": "fulltext",
            "publisher_name": work.publisher.publisher_name,
            "publication_type": PUBLICATION_TYPE.translate(work.work_type, "work_type"),
            "date_monograph_published_print": published if print_isbns else None,
            "date_monograph_published_online": published,
            "monograph_volume": issues[0].issue_ordinal if issues else None,
            "monograph_edition": work.edition,
            "first_editor": _first_surname(work, ContributionType.EDITOR),
            "access_type": "F" if work.license_kind() != LicenseKind.UNDEFINED else "P",
        }
        return [_clean(values.get(column)) for column in COLUMNS]

    def assemble(self, fragments: list[list[str]], works: Sequence[Work]) -> bytes:
        lines = ["\t".join(COLUMNS)]
        lines.extend("\t".join(row) for row in fragments)
        return ("\n".join(lines) + "\n").encode("utf-8")
