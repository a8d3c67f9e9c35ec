"""ONIX for Books 3.0 encoder and its distribution-channel profiles."""

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
    LANGUAGE_ROLE,
    LICENSE_NAME,
    PRODUCT_AVAILABILITY,
    PRODUCT_FORM,
    PRODUCT_FORM_DETAIL,
    PUBLISHING_STATUS,
    SUBJECT_SCHEME,
    TEXT_SUBJECTS,
)

ONIX3_NAMESPACE = "http://ns.editeur.org/onix/3.0/reference"
ALL_SUBJECTS = frozenset(SubjectType)


@dataclass(frozen=True)
class Onix3Profile:
    """Per-recipient variations on the ONIX 3.0 message."""

    dialect: Dialect
    contract: Contract
    primary_types: tuple[PublicationType, ...]
    subject_schemes: frozenset[SubjectType] = ALL_SUBJECTS
    unpriced: bool = False
    related_products: bool = False
    cover: bool = True


class Onix3Encoder(Encoder):
    def __init__(self, profile: Onix3Profile) -> None:
        self.profile = profile

    def render_work(self, work: Work) -> ET.Element:
        primary = work.publication_of(*self.profile.primary_types)
        product = ET.Element("Product")
        sub_element(product, "RecordReference", f"urn:uuid:{work.work_id}")
        sub_element(product, "NotificationType", "03")
        sub_element(product, "RecordSourceType", "01")
        self._identifier(product, "01", str(work.work_id), name="Work ID")
        if primary and primary.isbn:
            self._identifier(product, "15", primary.isbn)
        if work.doi:
            self._identifier(product, "06", work.doi)
        self._descriptive_detail(product, work, primary)
        self._collateral_detail(product, work)
        self._publishing_detail(product, work)
        if self.profile.related_products:
            self._related_material(product, work, primary)
        self._product_supply(product, work, primary)
        return product

    def assemble(self, fragments: list[ET.Element], works: Sequence[Work]) -> bytes:
        root = ET.Element("ONIXMessage", {"release": "3.0", "xmlns": ONIX3_NAMESPACE})
        header = sub_element(root, "Header")
        sender = sub_element(header, "Sender")
        sub_element(sender, "SenderName", works[0].publisher.publisher_name)
        sent = sent_timestamp(works)
        if sent:
            sub_element(header, "SentDateTime", sent.strftime("%Y%m%dT%H%M%S"))
        root.extend(fragments)
        return serialize_xml(root)

    # ------------------------------------------------------------------ blocks
    @staticmethod
    def _identifier(parent: ET.Element, id_type: str, value: str, name: Optional[str] = None) -> None:
        identifier = sub_element(parent, "ProductIdentifier")
        sub_element(identifier, "ProductIDType", id_type)
        if name:
            sub_element(identifier, "IDTypeName", name)
        sub_element(identifier, "IDValue", value)

    def _descriptive_detail(self, product: ET.Element, work: Work, primary: Optional[Publication]) -> None:
        detail = sub_element(product, "DescriptiveDetail")
        sub_element(detail, "ProductComposition", "00")
        if primary:
            sub_element(detail, "ProductForm", PRODUCT_FORM.translate(primary.publication_type, "publication_type"))
            form_detail = PRODUCT_FORM_DETAIL.translate(primary.publication_type, "publication_type")
            if form_detail:
                sub_element(detail, "ProductFormDetail", form_detail)
            if not primary.is_digital:
                self._measures(detail, primary)
        else:
            sub_element(detail, "ProductForm", "00")

        issues = work.ordered_issues()
        for issue in issues:
            collection = sub_element(detail, "Collection")
            sub_element(collection, "CollectionType", "10")
            issn = issue.series.issn_digital or issue.series.issn_print
            if issn:
                identifier = sub_element(collection, "CollectionIdentifier")
                sub_element(identifier, "CollectionIDType", "02")
                sub_element(identifier, "IDValue", issn.replace("-", ""))
            title_detail = sub_element(collection, "TitleDetail")
            sub_element(title_detail, "TitleType", "01")
            element = sub_element(title_detail, "TitleElement")
            sub_element(element, "TitleElementLevel", "02")
            sub_element(element, "PartNumber", issue.issue_ordinal)
            sub_element(element, "TitleText", issue.series.series_name)
        if not issues:
            sub_element(detail, "NoCollection")

        title_detail = sub_element(detail, "TitleDetail")
        sub_element(title_detail, "TitleType", "01")
        element = sub_element(title_detail, "TitleElement")
        sub_element(element, "TitleElementLevel", "01")
        sub_element(element, "TitleText", work.title)
        if work.subtitle:
            sub_element(element, "Subtitle", work.subtitle)

        contributions = work.ordered_contributions()
        for sequence, contribution in enumerate(contributions, start=1):
            contributor = sub_element(detail, "Contributor")
            sub_element(contributor, "SequenceNumber", sequence)
            sub_element(
                contributor,
                "ContributorRole",
                CONTRIBUTOR_ROLE.translate(contribution.contribution_type, "contribution_type"),
            )
            if contribution.orcid:
                name_identifier = sub_element(contributor, "NameIdentifier")
                sub_element(name_identifier, "NameIDType", "21")
                sub_element(name_identifier, "IDValue", contribution.orcid)
            sub_element(contributor, "PersonName", contribution.full_name)
            if contribution.first_name:
                sub_element(contributor, "NamesBeforeKey", contribution.first_name)
            sub_element(contributor, "KeyNames", contribution.last_name)
            if contribution.biography:
                sub_element(contributor, "BiographicalNote", contribution.biography)
        if not contributions:
            sub_element(detail, "NoContributor")

        if work.edition:
            sub_element(detail, "EditionNumber", work.edition)
        for language in work.ordered_languages():
            element = sub_element(detail, "Language")
            sub_element(element, "LanguageRole", LANGUAGE_ROLE.translate(language.language_relation, "language_relation"))
            sub_element(element, "LanguageCode", language.language_code.lower())
        if work.page_count:
            extent = sub_element(detail, "Extent")
            sub_element(extent, "ExtentType", "00")
            sub_element(extent, "ExtentValue", work.page_count)
            sub_element(extent, "ExtentUnit", "03")
        for subject in work.ordered_subjects():
            if subject.subject_type not in self.profile.subject_schemes:
                continue
            element = sub_element(detail, "Subject")
            sub_element(element, "SubjectSchemeIdentifier", SUBJECT_SCHEME.translate(subject.subject_type, "subject_type"))
            if subject.subject_type in TEXT_SUBJECTS:
                sub_element(element, "SubjectHeadingText", subject.subject_code)
            else:
                sub_element(element, "SubjectCode", subject.subject_code)

    @staticmethod
    def _measures(detail: ET.Element, publication: Publication) -> None:
        measures = (
            ("01", publication.height_mm, "mm"),
            ("02", publication.width_mm, "mm"),
            ("03", publication.depth_mm, "mm"),
            ("08", publication.weight_g, "gr"),
        )
        for measure_type, value, unit in measures:
            if value is None:
                continue
            measure = sub_element(detail, "Measure")
            sub_element(measure, "MeasureType", measure_type)
            sub_element(measure, "Measurement", f"{value:g}")
            sub_element(measure, "MeasureUnitCode", unit)

    def _collateral_detail(self, product: ET.Element, work: Work) -> None:
        texts = [("03", work.long_abstract), ("02", work.short_abstract)]
        cover = work.cover_url if self.profile.cover else None
        if not any(text for _, text in texts) and not cover:
            return
        collateral = sub_element(product, "CollateralDetail")
        for text_type, text in texts:
            if not text:
                continue
            content = sub_element(collateral, "TextContent")
            sub_element(content, "TextType", text_type)
            sub_element(content, "ContentAudience", "00")
            sub_element(content, "Text", text)
        if cover:
            resource = sub_element(collateral, "SupportingResource")
            sub_element(resource, "ResourceContentType", "01")
            sub_element(resource, "ContentAudience", "00")
            sub_element(resource, "ResourceMode", "03")
            version = sub_element(resource, "ResourceVersion")
            sub_element(version, "ResourceForm", "02")
            sub_element(version, "ResourceLink", cover)

    @staticmethod
    def _publishing_detail(product: ET.Element, work: Work) -> None:
        detail = sub_element(product, "PublishingDetail")
        imprint = sub_element(detail, "Imprint")
        sub_element(imprint, "ImprintName", work.imprint.imprint_name)
        publisher = sub_element(detail, "Publisher")
        sub_element(publisher, "PublishingRole", "01")
        sub_element(publisher, "PublisherName", work.publisher.publisher_name)
        if work.publisher.publisher_url:
            website = sub_element(publisher, "Website")
            sub_element(website, "WebsiteRole", "01")
            sub_element(website, "WebsiteLink", work.publisher.publisher_url)
        if work.place:
            sub_element(detail, "CityOfPublication", work.place)
        sub_element(detail, "PublishingStatus", PUBLISHING_STATUS.translate(work.work_status, "work_status"))
        if work.publication_date:
            published = sub_element(detail, "PublishingDate")
            sub_element(published, "PublishingDateRole", "01")
            sub_element(published, "Date", format_date(work.publication_date), dateformat="00")
        license_name = LICENSE_NAME.translate(work.license_kind(), "license")
        if license_name:
            epub_license = sub_element(detail, "EpubLicense")
            sub_element(epub_license, "EpubLicenseName", license_name)
            expression = sub_element(epub_license, "EpubLicenseExpression")
            sub_element(expression, "EpubLicenseExpressionType", "02")
            sub_element(expression, "EpubLicenseExpressionLink", work.license)

    @staticmethod
    def _related_material(product: ET.Element, work: Work, primary: Optional[Publication]) -> None:
        others = [p for p in work.ordered_publications() if p.isbn and p is not primary]
        if not others:
            return
        related = sub_element(product, "RelatedMaterial")
        for publication in others:
            related_product = sub_element(related, "RelatedProduct")
            sub_element(related_product, "ProductRelationCode", "06")
            identifier = sub_element(related_product, "ProductIdentifier")
            sub_element(identifier, "ProductIDType", "15")
            sub_element(identifier, "IDValue", publication.isbn)

    def _product_supply(self, product: ET.Element, work: Work, primary: Optional[Publication]) -> None:
        supply = sub_element(product, "ProductSupply")
        market = sub_element(supply, "Market")
        territory = sub_element(market, "Territory")
        sub_element(territory, "RegionsIncluded", "WORLD")
        detail = sub_element(supply, "SupplyDetail")
        supplier = sub_element(detail, "Supplier")
        sub_element(supplier, "SupplierRole", "09")
        sub_element(supplier, "SupplierName", work.publisher.publisher_name)
        links = [("01", work.landing_page)]
        if primary and primary.is_digital:
            location = primary.canonical_location()
            links.append(("29", location.full_text_url if location else None))
        for role, link in links:
            if not link:
                continue
            website = sub_element(supplier, "Website")
            sub_element(website, "WebsiteRole", role)
            sub_element(website, "WebsiteLink", link)
        sub_element(
            detail,
            "ProductAvailability",
            PRODUCT_AVAILABILITY.translate(work.work_status, "work_status"),
        )
        prices = primary.ordered_prices() if primary else []
        if self.profile.unpriced or not prices:
            sub_element(detail, "UnpricedItemType", "01")
            return
        for price in prices:
            element = sub_element(detail, "Price")
            sub_element(element, "PriceType", "02")
            sub_element(element, "PriceAmount", format_amount(price.unit_price))
            sub_element(element, "CurrencyCode", price.currency_code)


DIGITAL_FIRST = (
    PublicationType.PDF,
    PublicationType.EPUB,
    PublicationType.HTML,
    PublicationType.XML,
    PublicationType.MOBI,
    PublicationType.AZW3,
    PublicationType.DOCX,
    PublicationType.FICTION_BOOK,
    PublicationType.PAPERBACK,
    PublicationType.HARDBACK,
)

PROFILES: dict[Dialect, Onix3Profile] = {
    Dialect.THOTH: Onix3Profile(
        dialect=Dialect.THOTH,
        contract=req.contract(req.WORK_ID, req.TITLE, req.PUBLISHER),
        primary_types=DIGITAL_FIRST,
        related_products=True,
    ),
    Dialect.PROJECT_MUSE: Onix3Profile(
        dialect=Dialect.PROJECT_MUSE,
        contract=req.contract(
            req.TITLE,
            req.LONG_ABSTRACT,
            req.LANDING_PAGE,
            req.LANGUAGE,
            req.BIC_OR_BISAC_SUBJECT,
            req.PDF_URL,
        ),
        primary_types=(PublicationType.PDF,),
        subject_schemes=frozenset({SubjectType.BIC, SubjectType.BISAC, SubjectType.KEYWORD}),
        unpriced=True,
    ),
    Dialect.OAPEN: Onix3Profile(
        dialect=Dialect.OAPEN,
        contract=req.contract(req.TITLE, req.LONG_ABSTRACT, req.LANDING_PAGE, req.LICENSE, req.PDF_URL),
        primary_types=(PublicationType.PDF,),
        subject_schemes=frozenset({SubjectType.BIC, SubjectType.BISAC, SubjectType.THEMA, SubjectType.KEYWORD}),
        unpriced=True,
    ),
    Dialect.JSTOR: Onix3Profile(
        dialect=Dialect.JSTOR,
        contract=req.contract(
            req.TITLE,
            req.LONG_ABSTRACT,
            req.LANDING_PAGE,
            req.LANGUAGE,
            req.BISAC_SUBJECT,
            req.DIGITAL_ISBN,
            req.PDF_URL,
        ),
        primary_types=(PublicationType.PDF,),
        subject_schemes=frozenset({SubjectType.BIC, SubjectType.BISAC, SubjectType.KEYWORD}),
        unpriced=True,
        cover=False,
    ),
    Dialect.GOOGLE_BOOKS: Onix3Profile(
        dialect=Dialect.GOOGLE_BOOKS,
        contract=req.contract(
            req.TITLE,
            req.LONG_ABSTRACT,
            req.PUBLICATION_DATE,
            req.LANGUAGE,
            req.BISAC_SUBJECT,
            req.DIGITAL_ISBN,
            req.publication_of(PublicationType.EPUB, PublicationType.PDF),
        ),
        primary_types=(PublicationType.EPUB, PublicationType.PDF),
        subject_schemes=frozenset({SubjectType.BISAC, SubjectType.THEMA, SubjectType.KEYWORD}),
    ),
    Dialect.OVERDRIVE: Onix3Profile(
        dialect=Dialect.OVERDRIVE,
        contract=req.contract(
            req.TITLE,
            req.LONG_ABSTRACT,
            req.LANGUAGE,
            req.BISAC_SUBJECT,
            req.DIGITAL_ISBN,
            req.PRICE,
            req.COVER_URL,
            req.publication_of(PublicationType.EPUB, PublicationType.PDF),
        ),
        primary_types=(PublicationType.EPUB, PublicationType.PDF),
        subject_schemes=frozenset({SubjectType.BISAC}),
    ),
}
