import xml.etree.ElementTree as ET

import pytest

from biblio_export.core.errors import ValidationFailedError

from conftest import build_work

ONIX3 = {"o": "http://ns.editeur.org/onix/3.0/reference"}
ONIX21 = {"o": "http://www.editeur.org/onix/2.1/reference"}


def _encode(registry, specification, *works, skip_invalid=False) -> bytes:
    descriptor = registry.resolve_specification(specification)
    return descriptor.encoder.encode(list(works), descriptor, skip_invalid=skip_invalid)


@pytest.mark.parametrize(
    "specification",
    [
        "onix_3.0::thoth",
        "onix_3.0::project_muse",
        "onix_3.0::oapen",
        "onix_3.0::jstor",
        "onix_3.0::google_books",
        "onix_3.0::overdrive",
    ],
)
def test_onix3_dialects_render_a_complete_work(registry, work, specification) -> None:
    output = _encode(registry, specification, work)
    root = ET.fromstring(output)
    assert root.get("release") == "3.0"
    products = root.findall("o:Product", ONIX3)
    assert len(products) == 1
    assert products[0].findtext("o:RecordReference", namespaces=ONIX3) == f"urn:uuid:{work.work_id}"
    assert root.findtext("o:Header/o:SentDateTime", namespaces=ONIX3) == "20210301T120000"


def test_onix3_output_is_deterministic(registry, work) -> None:
    assert _encode(registry, "onix_3.0::thoth", work) == _encode(registry, "onix_3.0::thoth", work)


def test_onix3_thoth_lists_other_formats_as_related_products(registry, work) -> None:
    root = ET.fromstring(_encode(registry, "onix_3.0::thoth", work))
    product = root.find("o:Product", ONIX3)
    assert product.findtext("o:DescriptiveDetail/o:ProductForm", namespaces=ONIX3) == "EB"
    related = [
        e.text for e in product.findall("o:RelatedMaterial/o:RelatedProduct/o:ProductIdentifier/o:IDValue", ONIX3)
    ]
    assert related == ["9781800640122", "9781800640115"]
    contributors = product.findall("o:DescriptiveDetail/o:Contributor", ONIX3)
    assert [c.findtext("o:ContributorRole", namespaces=ONIX3) for c in contributors] == ["A01", "B01"]


def test_onix3_open_access_dialect_is_unpriced(registry, work) -> None:
    root = ET.fromstring(_encode(registry, "onix_3.0::oapen", work))
    detail = root.find("o:Product/o:ProductSupply/o:SupplyDetail", ONIX3)
    assert detail.findtext("o:UnpricedItemType", namespaces=ONIX3) == "01"
    assert detail.find("o:Price", ONIX3) is None
    licence = root.findtext("o:Product/o:PublishingDetail/o:EpubLicense/o:EpubLicenseName", namespaces=ONIX3)
    assert licence


def test_onix3_overdrive_restricts_subjects_to_bisac(registry, work) -> None:
    root = ET.fromstring(_encode(registry, "onix_3.0::overdrive", work))
    schemes = [
        e.text for e in root.findall("o:Product/o:DescriptiveDetail/o:Subject/o:SubjectSchemeIdentifier", ONIX3)
    ]
    assert schemes == ["10"]
    assert root.findtext("o:Product/o:DescriptiveDetail/o:ProductFormDetail", namespaces=ONIX3) == "E101"


def test_missing_abstract_fails_project_muse(registry) -> None:
    work = build_work(longAbstract=None)
    with pytest.raises(ValidationFailedError) as excinfo:
        _encode(registry, "onix_3.0::project_muse", work)
    assert excinfo.value.missing_fields == ("long_abstract",)
    assert excinfo.value.specification == "onix_3.0::project_muse"
    assert excinfo.value.work_id == work.work_id


def test_every_missing_field_is_reported_at_once(registry) -> None:
    work = build_work(longAbstract=None, landingPage=None, subjects=[])
    with pytest.raises(ValidationFailedError) as excinfo:
        _encode(registry, "onix_2.1::ebsco_host", work)
    assert set(excinfo.value.missing_fields) == {"long_abstract", "landing_page", "bic_or_bisac_subject"}


def test_onix21_uses_main_subject_elements(registry, work) -> None:
    root = ET.fromstring(_encode(registry, "onix_2.1::proquest_ebrary", work))
    assert root.get("release") == "2.1"
    product = root.find("o:Product", ONIX21)
    assert product.findtext("o:BICMainSubject", namespaces=ONIX21) == "KNTP"
    assert product.findtext("o:BASICMainSubject", namespaces=ONIX21) == "LAN027000"
    assert product.findtext("o:EpubType", namespaces=ONIX21) == "002"
    assert root.findtext("o:Header/o:SentDate", namespaces=ONIX21) == "20210301"


def test_proquest_requires_a_digital_isbn(registry, work_factory) -> None:
    publications = build_work().model_dump(by_alias=True, mode="json")["publications"]
    for publication in publications:
        publication["isbn"] = None
    with pytest.raises(ValidationFailedError) as excinfo:
        _encode(registry, "onix_2.1::proquest_ebrary", work_factory(publications=publications))
    assert "digital_isbn" in excinfo.value.missing_fields
