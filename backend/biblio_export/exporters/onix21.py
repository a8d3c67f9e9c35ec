"""ONIX for Books 2.1 encoder for library aggregators."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional, Sequence

from ..schemas.request import Dialect
from ..schemas.work import Publication, PublicationType, SubjectType, Work
from . import contracts as req
from .base import Encoder, format_amount, format_date, sent_timestamp, serialize_xml, sub_element
from .contracts import Contract
from .onix_codes import (
    CONTRIBUTOR_ROLE,
    EPUB_TYPE,
    LANGUAGE_ROLE,
    PRODUCT_AVAILABILITY,
    PUBLISHING_STATUS,
    SUBJECT_SCHEME,
    TEXT_SUBJECTS,
)

ONIX21_NAMESPACE = "http://www.editeur.org/onix/2.1/reference"
MAIN_SUBJECT_TAGS = {SubjectType.BIC: "BICMainSubject", SubjectType.BISAC: "BASICMainSubject"}


@dataclass(frozen=True)
class Onix21Profile:
    dialect: Dialect
    contract: Contract
    primary_types: tuple[PublicationType, ...]
    default_currency: str = "USD"


class Onix21Encoder(Encoder):
    def __init__(self, profile: Onix21Profile) -> None:
        self.profile = profile

    def render_work(self, work: Work) -> ET.Element:
        primary = work.publication_of(*self.profile.primary_types)
        product = ET.Element("Product")
        sub_element(product, "RecordReference", f"urn:uuid:{work.work_id}")
        sub_element(product, "NotificationType", "03")
        self._identifier(product, "01", str(work.work_id), name="Work ID")
        if primary and primary.isbn:
            self._identifier(product, "15", primary.isbn)
        if work.doi:
            self._identifier(product, "06", work.doi)
        sub_element(product, "ProductForm", "DG")
        if primary:
            sub_element(product, "EpubType", EPUB_TYPE.translate(primary.publication_type, "publication_type"))

        for issue in work.ordered_issues():
            series = sub_element(product, "Series")
            issn = issue.series.issn_digital or issue.series.issn_print
            if issn:
                identifier = sub_element(series, "SeriesIdentifier")
                sub_element(identifier, "SeriesIDType", "02")
                sub_element(identifier, "IDValue", issn.replace("-", ""))
            sub_element(series, "TitleOfSeries", issue.series.series_name)
            sub_element(series, "NumberWithinSeries", issue.issue_ordinal)

        title = sub_element(product, "Title")
        sub_element(title, "TitleType", "01")
        sub_element(title, "TitleText", work.title)
        if work.subtitle:
            sub_element(title, "Subtitle", work.subtitle)

        for sequence, contribution in enumerate(work.ordered_contributions(), start=1):
            contributor = sub_element(product, "Contributor")
            sub_element(contributor, "SequenceNumber", sequence)
            sub_element(
                contributor,
                "ContributorRole",
                CONTRIBUTOR_ROLE.translate(contribution.contribution_type, "contribution_type"),
            )
            sub_element(contributor, "PersonName", contribution.full_name)
            if contribution.first_name:
                sub_element(contributor, "NamesBeforeKey", contribution.first_name)
            sub_element(contributor, "KeyNames", contribution.last_name)
            if contribution.biography:
                sub_element(contributor, "BiographicalNote", contribution.biography)

        if work.edition:
            sub_element(product, "EditionNumber", work.edition)
        for language in work.ordered_languages():
            element = sub_element(product, "Language")
            sub_element(element, "LanguageRole", LANGUAGE_ROLE.translate(language.language_relation, "language_relation"))
            sub_element(element, "LanguageCode", language.language_code.lower())
        if work.page_count:
            sub_element(product, "NumberOfPages", work.page_count)
        self._subjects(product, work)

        for text_type, text in (("01", work.long_abstract), ("02", work.short_abstract)):
            if text:
                other_text = sub_element(product, "OtherText")
                sub_element(other_text, "TextTypeCode", text_type)
                sub_element(other_text, "Text", text)
        if work.cover_url:
            media = sub_element(product, "MediaFile")
            sub_element(media, "MediaFileTypeCode", "04")
            sub_element(media, "MediaFileLinkTypeCode", "01")
            sub_element(media, "MediaFileLink", work.cover_url)

        imprint = sub_element(product, "Imprint")
        sub_element(imprint, "ImprintName", work.imprint.imprint_name)
        publisher = sub_element(product, "Publisher")
        sub_element(publisher, "PublishingRole", "01")
        sub_element(publisher, "PublisherName", work.publisher.publisher_name)
        if work.place:
            sub_element(product, "CityOfPublication", work.place)
        sub_element(product, "PublishingStatus", PUBLISHING_STATUS.translate(work.work_status, "work_status"))
        if work.publication_date:
            sub_element(product, "PublicationDate", format_date(work.publication_date))
        self._supply_detail(product, work, primary)
        return product

    def assemble(self, fragments: list[ET.Element], works: Sequence[Work]) -> bytes:
        root = ET.Element("ONIXMessage", {"release": "2.1", "xmlns": ONIX21_NAMESPACE})
        header = sub_element(root, "Header")
        sub_element(header, "FromCompany", works[0].publisher.publisher_name)
        sent = sent_timestamp(works)
        if sent:
            sub_element(header, "SentDate", sent.strftime("%Y%m%d"))
        root.extend(fragments)
        return serialize_xml(root)

    @staticmethod
    def _identifier(parent: ET.Element, id_type: str, value: str, name: Optional[str] = None) -> None:
        identifier = sub_element(parent, "ProductIdentifier")
        sub_element(identifier, "ProductIDType", id_type)
        if name:
            sub_element(identifier, "IDTypeName", name)
        sub_element(identifier, "IDValue", value)

    @staticmethod
    def _subjects(product: ET.Element, work: Work) -> None:
        # 2.1 carries the first BIC and BISAC codes as dedicated main-subject elements
        for subject_type, tag in MAIN_SUBJECT_TAGS.items():
            first = work.subjects_of(subject_type)
            if first:
                sub_element(product, tag, first[0].subject_code)
        for subject in work.ordered_subjects():
            if subject.subject_type == SubjectType.LCC:
                continue
            element = sub_element(product, "Subject")
            sub_element(element, "SubjectSchemeIdentifier", SUBJECT_SCHEME.translate(subject.subject_type, "subject_type"))
            if subject.subject_type in TEXT_SUBJECTS:
                sub_element(element, "SubjectHeadingText", subject.subject_code)
            else:
                sub_element(element, "SubjectCode", subject.subject_code)

    def _supply_detail(self, product: ET.Element, work: Work, primary: Optional[Publication]) -> None:
        supply = sub_element(product, "SupplyDetail")
        sub_element(supply, "SupplierName", work.publisher.publisher_name)
        sub_element(supply, "SupplierRole", "01")
        location = primary.canonical_location() if primary else None
        for role, link in (("01", work.landing_page), ("29", location.full_text_url if location else None)):
            if link:
                website = sub_element(supply, "Website")
                sub_element(website, "WebsiteRole", role)
                sub_element(website, "WebsiteLink", link)
        sub_element(
            supply,
            "ProductAvailability",
            PRODUCT_AVAILABILITY.translate(work.work_status, "work_status"),
        )
        prices = primary.ordered_prices() if primary else []
        if not prices:
            price = sub_element(supply, "Price")
            sub_element(price, "PriceTypeCode", "01")
            sub_element(price, "PriceAmount", format_amount(0))
            sub_element(price, "CurrencyCode", self.profile.default_currency)
            return
        for entry in prices:
            price = sub_element(supply, "Price")
            sub_element(price, "PriceTypeCode", "02")
            sub_element(price, "PriceAmount", format_amount(entry.unit_price))
            sub_element(price, "CurrencyCode", entry.currency_code)


PROFILES: dict[Dialect, Onix21Profile] = {
    Dialect.EBSCO_HOST: Onix21Profile(
        dialect=Dialect.EBSCO_HOST,
        contract=req.contract(
            req.TITLE,
            req.LONG_ABSTRACT,
            req.LANDING_PAGE,
            req.BIC_OR_BISAC_SUBJECT,
            req.PDF_URL,
        ),
        primary_types=(PublicationType.PDF,),
    ),
    Dialect.PROQUEST_EBRARY: Onix21Profile(
        dialect=Dialect.PROQUEST_EBRARY,
        contract=req.contract(
            req.TITLE,
            req.LONG_ABSTRACT,
            req.LANDING_PAGE,
            req.BIC_OR_BISAC_SUBJECT,
            req.PDF_URL,
            req.DIGITAL_ISBN,
        ),
        primary_types=(PublicationType.PDF,),
    ),
}
