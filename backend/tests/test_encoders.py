import xml.etree.ElementTree as ET

import pytest

from biblio_export.core import config
from biblio_export.core.errors import NotFoundError
from biblio_export.exporters import build_registry
from biblio_export.exporters.base import clean_text

from conftest import build_work

SPECIFICATIONS = [d.specification for d in build_registry(config.get_settings()).descriptors()]
XML_SPECIFICATIONS = [
    d.specification for d in build_registry(config.get_settings()).descriptors() if "xml" in d.content_type
]


def _encode(registry, specification, *works) -> bytes:
    descriptor = registry.resolve_specification(specification)
    return descriptor.encoder.encode(list(works), descriptor)


def test_every_dialect_is_covered() -> None:
    assert len(SPECIFICATIONS) == 16
    assert len(XML_SPECIFICATIONS) == 10


@pytest.mark.parametrize("specification", SPECIFICATIONS)
def test_output_is_byte_identical_for_identical_input(registry, specification) -> None:
    first = _encode(registry, specification, build_work())
    second = _encode(registry, specification, build_work())
    assert first
    assert first == second


@pytest.mark.parametrize("specification", XML_SPECIFICATIONS)
def test_control_characters_never_break_xml(registry, specification) -> None:
    work = build_work(longAbstract="Page one.\x0cPage two.\x01", title="Title\x0b")
    output = _encode(registry, specification, work)
    ET.fromstring(output)
    assert b"\x0c" not in output
    assert b"\x0b" not in output
    assert b"\x01" not in output


def test_clean_text_keeps_ordinary_whitespace() -> None:
    assert clean_text("a\tb\nc\rd") == "a\tb\nc\rd"
    assert clean_text("Page one.\x0cPage two.") == "Page one. Page two."
    assert clean_text("bell\x07 and \ufffe") == "bell and "
    assert clean_text(2020) == "2020"


def test_encoding_nothing_is_not_found(registry) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        _encode(registry, "csv::thoth")
    assert excinfo.value.status_code == 404
