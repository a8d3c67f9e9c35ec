import csv
import io
import json

import pytest

from biblio_export.core.errors import ValidationFailedError
from biblio_export.exporters.bibtex import citation_key, escape
from biblio_export.exporters.csv import COLUMNS as CSV_COLUMNS
from biblio_export.exporters.kbart import COLUMNS as KBART_COLUMNS

from conftest import build_work


def _encode(registry, specification, *works, skip_invalid=False) -> bytes:
    descriptor = registry.resolve_specification(specification)
    return descriptor.encoder.encode(list(works), descriptor, skip_invalid=skip_invalid)


def test_csv_has_header_and_one_row_per_work(registry, work) -> None:
    other = build_work(workId="00000000-0000-0000-aaaa-000000000002", title="Second, with comma")
    text = _encode(registry, "csv::thoth", work, other).decode("utf-8")
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == list(CSV_COLUMNS)
    assert len(rows) == 3
    record = dict(zip(rows[0], rows[1]))
    assert record["doi"] == "10.11647/OBP.0001"
    assert record["contributions"] == "[AUTHOR] Jane Doe (0000-0002-1825-0097); [EDITOR] John Smith"
    assert dict(zip(rows[0], rows[2]))["title"] == "Second, with comma"
    assert "\r\n" not in text


def test_json_is_an_array_with_camel_case_keys(registry, work) -> None:
    payload = json.loads(_encode(registry, "json::thoth", work))
    assert isinstance(payload, list)
    assert payload[0]["workId"] == str(work.work_id)
    assert [c["contributionOrdinal"] for c in payload[0]["contributions"]] == [1, 2]


def test_json_is_byte_stable(registry, work) -> None:
    assert _encode(registry, "json::thoth", work) == _encode(registry, "json::thoth", build_work())


def test_kbart_row_matches_columns(registry, work) -> None:
    lines = _encode(registry, "kbart::oclc", work).decode("utf-8").splitlines()
    assert lines[0].split("\t") == list(KBART_COLUMNS)
    row = dict(zip(KBART_COLUMNS, lines[1].split("\t")))
    assert row["publication_title"] == "Open Access Publishing: A Field Guide"
    assert row["print_identifier"] == "9781800640122"
    assert row["online_identifier"] == "9781800640108"
    assert row["publication_type"] == "monograph"
    assert row["first_author"] == "Doe"
    assert row["first_editor"] == "Smith"
    assert row["access_type"] == "F"


def test_kbart_collapses_tabs_and_newlines(registry) -> None:
    work = build_work(fullTitle="A\ttitle\nacross lines")
    row = _encode(registry, "kbart::oclc", work).decode("utf-8").splitlines()[1]
    assert row.split("\t")[0] == "A title across lines"


def test_kbart_rejects_chapters(registry) -> None:
    with pytest.raises(ValidationFailedError) as excinfo:
        _encode(registry, "kbart::oclc", build_work(workType="BOOK_CHAPTER"))
    assert excinfo.value.invalid_fields == ("work_type",)
    assert excinfo.value.missing_fields == ()


def test_kbart_collection_skips_chapters(registry, work) -> None:
    chapter = build_work(workId="00000000-0000-0000-aaaa-000000000003", workType="BOOK_CHAPTER")
    lines = _encode(registry, "kbart::oclc", chapter, work, skip_invalid=True).decode("utf-8").splitlines()
    assert len(lines) == 2


def test_bibtex_entry(registry, work) -> None:
    text = _encode(registry, "bibtex::thoth", work).decode("utf-8")
    assert text.startswith(f"@book{{Doe2020_{work.work_id.hex[:8]},")
    assert "    author = {Doe, Jane}," in text
    assert "    editor = {Smith, John}," in text
    assert "    doi = {10.11647/OBP.0001}," in text
    assert "    url = {https://www.openbookpublishers.com/product/1}," in text
    assert text.endswith("}\n")


def test_bibtex_requires_author_or_editor(registry) -> None:
    with pytest.raises(ValidationFailedError) as excinfo:
        _encode(registry, "bibtex::thoth", build_work(contributions=[]))
    assert excinfo.value.missing_fields == ("author_or_editor",)


def test_latex_specials_are_escaped() -> None:
    assert escape("R&D 100% of $5_a") == r"R\&D 100\% of \$5\_a"


def test_citation_key_is_ascii(work_factory) -> None:
    work = work_factory(
        contributions=[
            {
                "contributionId": "00000000-0000-0000-dddd-000000000009",
                "contributorId": "00000000-0000-0000-eeee-000000000009",
                "contributionType": "AUTHOR",
                "lastName": "Ñúñez",
                "fullName": "Ñúñez",
                "contributionOrdinal": 1,
            }
        ]
    )
    assert citation_key(work).startswith("Nunez2020_")
