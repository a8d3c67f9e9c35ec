from copy import deepcopy
from datetime import datetime
from typing import Any, Callable, Generator, Optional, Sequence
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from biblio_export.app import create_app
from biblio_export.core import config
from biblio_export.exporters import build_registry
from biblio_export.schemas.work import Work
from biblio_export.services import ExportCoordinator, RequestResolver, reset_export_coordinator, set_export_coordinator
from biblio_export.services.retry import RetryPolicy
from biblio_export.services.upstream import UpstreamNotFoundError

WORK_ID = UUID("00000000-0000-0000-aaaa-000000000001")
PUBLISHER_ID = UUID("00000000-0000-0000-bbbb-000000000001")
MISSING_WORK_ID = UUID("00000000-0000-0000-aaaa-0000000000ff")

BASE_WORK: dict[str, Any] = {
    "workId": str(WORK_ID),
    "workType": "MONOGRAPH",
    "workStatus": "ACTIVE",
    "fullTitle": "Open Access Publishing: A Field Guide",
    "title": "Open Access Publishing",
    "subtitle": "A Field Guide",
    "edition": 1,
    "doi": "https://doi.org/10.11647/OBP.0001",
    "publicationDate": "2020-06-15",
    "place": "Cambridge, UK",
    "pageCount": 240,
    "longAbstract": "A long description of open access publishing & its practices.",
    "shortAbstract": "A short description.",
    "license": "https://creativecommons.org/licenses/by/4.0/",
    "copyrightHolder": "Jane Doe",
    "landingPage": "https://www.openbookpublishers.com/product/1",
    "coverUrl": "https://www.openbookpublishers.com/covers/1.jpg",
    "lccn": None,
    "oclc": None,
    "updatedAtWithRelations": "2021-03-01T12:00:00+00:00",
    "imprint": {
        "imprintId": "00000000-0000-0000-cccc-000000000001",
        "imprintName": "Open Book Publishers",
        "publisher": {
            "publisherId": str(PUBLISHER_ID),
            "publisherName": "Open Book Publishers",
            "publisherShortname": "OBP",
        },
    },
    "contributions": [
        {
            "contributionId": "00000000-0000-0000-dddd-000000000002",
            "contributorId": "00000000-0000-0000-eeee-000000000002",
            "contributionType": "EDITOR",
            "firstName": "John",
            "lastName": "Smith",
            "fullName": "John Smith",
            "contributionOrdinal": 2,
        },
        {
            "contributionId": "00000000-0000-0000-dddd-000000000001",
            "contributorId": "00000000-0000-0000-eeee-000000000001",
            "contributionType": "AUTHOR",
            "firstName": "Jane",
            "lastName": "Doe",
            "fullName": "Jane Doe",
            "contributionOrdinal": 1,
            "orcid": "https://orcid.org/0000-0002-1825-0097",
            "biography": "Jane Doe writes about publishing.",
        },
    ],
    "subjects": [
        {"subjectId": "00000000-0000-0000-ffff-000000000001", "subjectType": "BISAC", "subjectCode": "LAN027000", "subjectOrdinal": 1},
        {"subjectId": "00000000-0000-0000-ffff-000000000002", "subjectType": "BIC", "subjectCode": "KNTP", "subjectOrdinal": 1},
        {"subjectId": "00000000-0000-0000-ffff-000000000003", "subjectType": "KEYWORD", "subjectCode": "open access", "subjectOrdinal": 1},
        {"subjectId": "00000000-0000-0000-ffff-000000000004", "subjectType": "LCC", "subjectCode": "Z286.O63", "subjectOrdinal": 1},
    ],
    "languages": [
        {
            "languageId": "00000000-0000-0000-1111-000000000001",
            "languageCode": "eng",
            "languageRelation": "ORIGINAL",
            "mainLanguage": True,
        }
    ],
    "issues": [
        {
            "issueId": "00000000-0000-0000-2222-000000000001",
            "issueOrdinal": 3,
            "series": {
                "seriesId": "00000000-0000-0000-3333-000000000001",
                "seriesType": "BOOK_SERIES",
                "seriesName": "Open Field Guides",
                "issnDigital": "2054-2437",
            },
        }
    ],
    "publications": [
        {
            "publicationId": "00000000-0000-0000-4444-000000000003",
            "publicationType": "PAPERBACK",
            "isbn": "978-1-80064-012-2",
            "prices": [{"priceId": "00000000-0000-0000-5555-000000000003", "currencyCode": "gbp", "unitPrice": 19.95}],
        },
        {
            "publicationId": "00000000-0000-0000-4444-000000000001",
            "publicationType": "PDF",
            "isbn": "978-1-80064-010-8",
            "prices": [{"priceId": "00000000-0000-0000-5555-000000000001", "currencyCode": "USD", "unitPrice": 5}],
            "locations": [
                {
                    "locationId": "00000000-0000-0000-6666-000000000001",
                    "landingPage": "https://www.openbookpublishers.com/product/1",
                    "fullTextUrl": "https://www.openbookpublishers.com/download/1.pdf",
                    "locationPlatform": "PUBLISHER_WEBSITE",
                    "canonical": True,
                }
            ],
        },
        {
            "publicationId": "00000000-0000-0000-4444-000000000002",
            "publicationType": "EPUB",
            "isbn": "9781800640115",
        },
    ],
}


def build_work(**overrides: Any) -> Work:
    """Canonical work built from ``BASE_WORK`` with camelCase overrides applied."""
    data = deepcopy(BASE_WORK)
    data.update(overrides)
    return Work.model_validate(data)


class FakeProvider:
    """In-memory metadata provider; ``failures`` queues exceptions raised before answering."""

    def __init__(self, works: Sequence[Work] = ()) -> None:
        self.works = {work.work_id: work for work in works}
        self.failures: list[Exception] = []
        self.calls: list[str] = []

    def _maybe_fail(self, call: str) -> None:
        self.calls.append(call)
        if self.failures:
            raise self.failures.pop(0)

    async def get_work(self, work_id: UUID) -> Work:
        self._maybe_fail("get_work")
        if work_id not in self.works:
            raise UpstreamNotFoundError(f"work {work_id}")
        return self.works[work_id]

    async def get_works(self, publishers: Sequence[UUID], limit: int, offset: int) -> list[Work]:
        self._maybe_fail("get_works")
        selected = [w for w in self.works.values() if w.publisher.publisher_id in publishers]
        return selected[offset : offset + limit]

    async def get_work_last_updated(self, work_id: UUID) -> Optional[datetime]:
        self._maybe_fail("get_work_last_updated")
        if work_id not in self.works:
            raise UpstreamNotFoundError(f"work {work_id}")
        return self.works[work_id].updated_at_with_relations

    async def get_works_last_updated(self, publishers: Sequence[UUID]) -> Optional[datetime]:
        self._maybe_fail("get_works_last_updated")
        stamps = [
            w.updated_at_with_relations
            for w in self.works.values()
            if w.publisher.publisher_id in publishers and w.updated_at_with_relations
        ]
        return max(stamps) if stamps else None


FAST_RETRY = RetryPolicy(max_attempts=5, base_delay=0.0, multiplier=1.0, max_delay=0.0)


@pytest.fixture()
def work() -> Work:
    return build_work()


@pytest.fixture()
def work_factory() -> Callable[..., Work]:
    return build_work


@pytest.fixture()
def registry():
    return build_registry(config.get_settings())


@pytest.fixture()
def provider(work: Work) -> FakeProvider:
    return FakeProvider([work])


@pytest.fixture()
def coordinator(provider: FakeProvider, registry) -> ExportCoordinator:
    return ExportCoordinator(RequestResolver(provider, FAST_RETRY), registry)


@pytest.fixture()
def client(coordinator: ExportCoordinator) -> Generator[TestClient, None, None]:
    set_export_coordinator(coordinator)
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    reset_export_coordinator()
