"""BibTeX encoder."""

from __future__ import annotations

import re
import unicodedata
from typing import Optional, Sequence

from ..schemas.work import DIGITAL_PUBLICATION_TYPES, ContributionType, PublicationType, Work, WorkType
from . import contracts as req
from .base import Encoder
from .vocabulary import VocabularyTable

CONTRACT = req.contract(req.TITLE, req.PUBLICATION_DATE, req.AUTHOR_OR_EDITOR, req.PUBLISHER)

ENTRY_TYPE = VocabularyTable(
    "bibtex.entry_type",
    WorkType,
    {
        WorkType.MONOGRAPH: "book",
        WorkType.EDITED_BOOK: "book",
        WorkType.TEXTBOOK: "book",
        WorkType.BOOK_SET: "book",
        WorkType.BOOK_CHAPTER: "inbook",
    },
    fallback="misc",
)

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
_LATEX_PATTERN = re.compile("|".join(re.escape(char) for char in _LATEX_SPECIALS))
VERBATIM_FIELDS = frozenset({"copyright", "doi", "url"})


def escape(value: str) -> str:
    return _LATEX_PATTERN.sub(lambda match: _LATEX_SPECIALS[match.group(0)], value)


def _ascii_slug(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^A-Za-z0-9]", "", normalized)


def citation_key(work: Work) -> str:
    people = work.contributions_of(ContributionType.AUTHOR) or work.contributions_of(ContributionType.EDITOR)
    surname = _ascii_slug(people[0].last_name) if people else "anon"
    year = work.publication_year or "nd"
    return f"{surname or 'anon'}{year}_{work.work_id.hex[:8]}"


def _names(work: Work, contribution_type: ContributionType) -> Optional[str]:
    names = [c.inverted_name for c in work.contributions_of(contribution_type)]
    return " and ".join(names) if names else None


class BibtexEncoder(Encoder):
    def render_work(self, work: Work) -> str:
        entry_type = ENTRY_TYPE.translate(work.work_type, "work_type")
        issues = work.ordered_issues()
        isbns = work.isbns(DIGITAL_PUBLICATION_TYPES) or work.isbns(PublicationType)
        title = f"{work.title}: {work.subtitle}" if work.subtitle else work.title
        fields = (
            ("author", _names(work, ContributionType.AUTHOR)),
            ("editor", _names(work, ContributionType.EDITOR)),
            ("title", title),
            ("year", work.publication_year),
            ("date", work.publication_date.isoformat() if work.publication_date else None),
            ("publisher", work.publisher.publisher_name),
            ("address", work.place),
            ("series", issues[0].series.series_name if issues else None),
            ("volume", issues[0].issue_ordinal if issues else None),
            ("edition", work.edition),
            ("pages", work.page_count),
            ("isbn", isbns[0] if isbns else None),
            ("doi", work.doi),
            ("url", work.landing_page),
            ("copyright", work.license),
            ("abstract", work.short_abstract),
        )
        lines = [f"@{entry_type}{{{citation_key(work)},"]
        for name, value in fields:
            if value is None or value == "":
                continue
            text = str(value) if name in VERBATIM_FIELDS else escape(str(value))
            lines.append(f"    {name} = {{{text}}},")
        lines.append("}")
        return "\n".join(lines)

    def assemble(self, fragments: list[str], works: Sequence[Work]) -> bytes:
        return ("\n\n".join(fragments) + "\n").encode("utf-8")
