import io
import xml.etree.ElementTree as ET

import pytest
from pymarc import MARCReader

from biblio_export.core.errors import ValidationFailedError
from biblio_export.exporters.marc21 import build_record, to_iso2709

from conftest import BASE_WORK, build_work

MARCXML = {"m": "http://www.loc.gov/MARC21/slim"}


def _encode(registry, specification, *works) -> bytes:
    descriptor = registry.resolve_specification(specification)
    return descriptor.encoder.encode(list(works), descriptor)


def _read(data: bytes) -> list:
    return list(MARCReader(io.BytesIO(data)))


def test_record_fields_follow_the_work(work) -> None:
    record = build_record(work)
    tags = [f.tag for f in record.fields]
    assert tags == sorted(tags)
    assert record["100"].subfields == [("a", "Doe, Jane"), ("e", "author"), ("4", "aut")]
    assert ("a", "Smith, John") in record.get_fields("700")[0].subfields
    assert (record["245"].indicator1, record["245"].indicator2) == ("1", "0")
    assert ("c", "Jane Doe") in record["245"].subfields
    assert record["264"].subfields == [
        ("a", "Cambridge, UK"),
        ("b", "Open Book Publishers"),
        ("c", "2020"),
    ]
    assert ("a", "1 online resource (240 pages)") in record["300"].subfields
    assert record["001"].data == str(work.work_id)


def test_fixed_length_field_is_forty_characters(work) -> None:
    fixed = build_record(work)["008"].data
    assert len(fixed) == 40
    assert fixed[7:11] == "2020"
    assert fixed[35:38] == "eng"


def test_fixed_length_language_falls_back_to_first_listed() -> None:
    languages = [dict(BASE_WORK["languages"][0], languageCode="fre", mainLanguage=False)]
    fixed = build_record(build_work(languages=languages))["008"].data
    assert fixed[35:38] == "fre"
    assert build_record(build_work(languages=[]))["008"].data[35:38] == "und"


def test_unmapped_relator_falls_back_to_contributor() -> None:
    contributions = [dict(c) for c in BASE_WORK["contributions"]]
    contributions[0]["contributionType"] = "MUSIC_EDITOR"
    record = build_record(build_work(contributions=contributions))
    assert ("4", "ctb") in record.get_fields("700")[0].subfields


def test_iso2709_declares_unicode_and_reads_back() -> None:
    title = "Écrits sur l’édition"
    data = to_iso2709(build_record(build_work(title=title)))
    assert data[9:10] == b"a"
    assert int(data[:5]) == len(data)
    (record,) = _read(data)
    assert record["245"]["a"] == title
    assert record["100"]["a"] == "Doe, Jane"


def test_oversized_field_is_rejected_instead_of_corrupting_the_directory(registry) -> None:
    work = build_work(longAbstract="x" * 12000)
    with pytest.raises(ValidationFailedError) as excinfo:
        _encode(registry, "marc21record::thoth", work)
    assert excinfo.value.invalid_fields == ("long_abstract",)
    assert excinfo.value.work_id == work.work_id
    # Only the binary form has a length-limited directory
    assert _encode(registry, "marc21xml::thoth", work)


def test_oversized_record_is_rejected(registry) -> None:
    keywords = [
        {
            "subjectId": f"00000000-0000-0000-ffff-0000000001{index:02d}",
            "subjectType": "KEYWORD",
            "subjectCode": f"{index:02d}" + "k" * 9000,
            "subjectOrdinal": index + 1,
        }
        for index in range(12)
    ]
    with pytest.raises(ValidationFailedError) as excinfo:
        _encode(registry, "marc21record::thoth", build_work(subjects=keywords))
    assert excinfo.value.invalid_fields == ("subjects",)


def test_markup_escapes_blank_indicators(registry, work) -> None:
    text = _encode(registry, "marc21markup::thoth", work).decode("utf-8")
    assert text.startswith("=LDR  ")
    assert "=020  \\\\$a9781800640122$qpaperback" in text
    assert "=245  10$aOpen Access Publishing$bA Field Guide$cJane Doe" in text


def test_markup_writes_reserved_characters_as_mnemonics(registry) -> None:
    text = _encode(registry, "marc21markup::thoth", build_work(title="$5 Books {new}")).decode("utf-8")
    assert "=245  10$a{dollar}5 Books {lcub}new{rcub}$b" in text


def test_marcxml_wraps_records_in_a_collection(registry, work) -> None:
    other = build_work(workId="00000000-0000-0000-aaaa-000000000002")
    root = ET.fromstring(_encode(registry, "marc21xml::thoth", work, other))
    records = root.findall("m:record", MARCXML)
    assert len(records) == 2
    assert records[0].findtext("m:leader", namespaces=MARCXML)[9] == "a"
    titles = records[0].findall("m:datafield[@tag='245']/m:subfield[@code='a']", MARCXML)
    assert titles[0].text == "Open Access Publishing"


def test_binary_record_dialect_concatenates_records(registry, work) -> None:
    other = build_work(workId="00000000-0000-0000-aaaa-000000000002")
    records = _read(_encode(registry, "marc21record::thoth", work, other))
    assert [r["001"].data for r in records] == [str(work.work_id), str(other.work_id)]
