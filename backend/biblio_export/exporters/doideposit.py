"""Crossref DOI deposit (schema 5.3.1) for books."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime, time
from typing import Sequence

from ..schemas.work import (
    DIGITAL_PUBLICATION_TYPES,
    ContributionType,
    Work,
    WorkType,
)
from . import contracts as req
from .base import Encoder, sent_timestamp, serialize_xml, sub_element
from .vocabulary import VocabularyTable

CROSSREF_NAMESPACE = "http://www.crossref.org/schema/5.3.1"
CROSSREF_SCHEMA_LOCATION = f"{CROSSREF_NAMESPACE} https://www.crossref.org/schemas/crossref5.3.1.xsd"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

CONTRACT = req.contract(req.DOI, req.PUBLICATION_DATE, req.LANDING_PAGE, req.AUTHOR, req.PUBLISHER)

# Chapters and journal issues are deposited as children of another record
BOOK_TYPE = VocabularyTable(
    "crossref.book_type",
    WorkType,
    {
        WorkType.MONOGRAPH: "monograph",
        WorkType.TEXTBOOK: "monograph",
        WorkType.EDITED_BOOK: "edited_book",
    },
    fallback="other",
    rejected=(WorkType.BOOK_CHAPTER, WorkType.JOURNAL_ISSUE),
)

CONTRIBUTOR_ROLE = VocabularyTable(
    "crossref.contributor_role",
    ContributionType,
    {
        ContributionType.AUTHOR: "author",
        ContributionType.EDITOR: "editor",
        ContributionType.TRANSLATOR: "translator",
        ContributionType.PHOTOGRAPHER: None,
        ContributionType.ILLUSTRATOR: None,
        ContributionType.MUSIC_EDITOR: None,
        ContributionType.FOREWORD_BY: None,
        ContributionType.INTRODUCTION_BY: None,
        ContributionType.AFTERWORD_BY: None,
        ContributionType.PREFACE_BY: None,
    },
)


def deposit_timestamp(works: Sequence[Work]) -> datetime:
    sent = sent_timestamp(works)
    if sent:
        return sent
    dates = [w.publication_date for w in works if w.publication_date]
    return datetime.combine(max(dates), time())


class CrossrefDepositEncoder(Encoder):
    def __init__(self, depositor_name: str, depositor_email: str) -> None:
        self.depositor_name = depositor_name
        self.depositor_email = depositor_email

    def render_work(self, work: Work) -> ET.Element:
        book = ET.Element("book", {"book_type": BOOK_TYPE.translate(work.work_type, "work_type")})
        metadata = sub_element(book, "book_metadata")
        contributors = sub_element(metadata, "contributors")
        first = True
        for contribution in work.ordered_contributions():
            role = CONTRIBUTOR_ROLE.translate(contribution.contribution_type, "contribution_type")
            if role is None:
                continue
            person = sub_element(
                contributors,
                "person_name",
                sequence="first" if first else "additional",
                contributor_role=role,
            )
            first = False
            if contribution.first_name:
                sub_element(person, "given_name", contribution.first_name)
            sub_element(person, "surname", contribution.last_name)
            if contribution.orcid:
                sub_element(person, "ORCID", f"https://orcid.org/{contribution.orcid}")

        titles = sub_element(metadata, "titles")
        sub_element(titles, "title", work.title)
        if work.subtitle:
            sub_element(titles, "subtitle", work.subtitle)
        if work.edition:
            sub_element(metadata, "edition_number", work.edition)

        published = sub_element(metadata, "publication_date", media_type="online")
        sub_element(published, "month", f"{work.publication_date.month:02d}")
        sub_element(published, "day", f"{work.publication_date.day:02d}")
        sub_element(published, "year", work.publication_date.year)

        isbns = work.isbns(DIGITAL_PUBLICATION_TYPES)
        for isbn in isbns:
            sub_element(metadata, "isbn", isbn, media_type="electronic")
        if not isbns:
            sub_element(metadata, "noisbn", reason="monograph")

        publisher = sub_element(metadata, "publisher")
        sub_element(publisher, "publisher_name", work.publisher.publisher_name)
        if work.place:
            sub_element(publisher, "publisher_place", work.place)

        doi_data = sub_element(metadata, "doi_data")
        sub_element(doi_data, "doi", work.doi)
        sub_element(doi_data, "resource", work.landing_page)
        return book

    def assemble(self, fragments: list[ET.Element], works: Sequence[Work]) -> bytes:
        stamp = deposit_timestamp(works)
        root = ET.Element(
            "doi_batch",
            {
                "xmlns": CROSSREF_NAMESPACE,
                "xmlns:xsi": XSI_NAMESPACE,
                "xsi:schemaLocation": CROSSREF_SCHEMA_LOCATION,
                "version": "5.3.1",
            },
        )
        head = sub_element(root, "head")
        sub_element(head, "doi_batch_id", f"{works[0].work_id}_{stamp.strftime('%Y%m%d%H%M%S')}")
        sub_element(head, "timestamp", stamp.strftime("%Y%m%d%H%M%S"))
        depositor = sub_element(head, "depositor")
        sub_element(depositor, "depositor_name", self.depositor_name)
        sub_element(depositor, "email_address", self.depositor_email)
        sub_element(head, "registrant", works[0].publisher.publisher_name)
        body = sub_element(root, "body")
        body.extend(fragments)
        return serialize_xml(root)
