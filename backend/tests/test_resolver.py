import asyncio

import pytest

from biblio_export.core.errors import MalformedUpstreamResponseError, NotFoundError, UpstreamUnavailableError
from biblio_export.schemas.request import ExportRequest, PublisherSelector, WorkSelector
from biblio_export.services.resolver import RequestResolver
from biblio_export.services.upstream import TransientUpstreamError, UpstreamProtocolError

from conftest import FAST_RETRY, MISSING_WORK_ID, PUBLISHER_ID, WORK_ID, FakeProvider, build_work


def _work_request(work_id=WORK_ID) -> ExportRequest:
    return ExportRequest.parse("onix_3.0::thoth", WorkSelector(work_id))


def _publisher_request(**kwargs) -> ExportRequest:
    return ExportRequest.parse("csv::thoth", PublisherSelector((PUBLISHER_ID,), **kwargs))


def test_single_work_is_resolved(provider) -> None:
    works = asyncio.run(RequestResolver(provider, FAST_RETRY).resolve_request(_work_request()))
    assert [w.work_id for w in works] == [WORK_ID]


def test_missing_work_is_not_found(provider) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(RequestResolver(provider, FAST_RETRY).resolve_request(_work_request(MISSING_WORK_ID)))
    assert str(MISSING_WORK_ID) in excinfo.value.identity


def test_collection_is_ordered_by_update_then_id() -> None:
    older = build_work(workId="00000000-0000-0000-aaaa-000000000003", updatedAtWithRelations="2020-01-01T00:00:00Z")
    tie_b = build_work(workId="00000000-0000-0000-aaaa-00000000000b", updatedAtWithRelations="2022-01-01T00:00:00Z")
    tie_a = build_work(workId="00000000-0000-0000-aaaa-00000000000a", updatedAtWithRelations="2022-01-01T00:00:00Z")
    provider = FakeProvider([older, tie_b, tie_a])
    works = asyncio.run(RequestResolver(provider, FAST_RETRY).resolve_request(_publisher_request()))
    assert [w.work_id for w in works] == [tie_a.work_id, tie_b.work_id, older.work_id]


def test_empty_page_is_not_found(provider) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(RequestResolver(provider, FAST_RETRY).resolve_request(_publisher_request(offset=50)))


def test_transient_failures_are_retried(provider) -> None:
    provider.failures = [TransientUpstreamError("503"), TransientUpstreamError("timeout")]
    works = asyncio.run(RequestResolver(provider, FAST_RETRY).resolve_request(_work_request()))
    assert len(works) == 1
    assert provider.calls == ["get_work"] * 3


def test_persistent_outage_is_upstream_unavailable(provider) -> None:
    provider.failures = [TransientUpstreamError("503") for _ in range(10)]
    with pytest.raises(UpstreamUnavailableError) as excinfo:
        asyncio.run(RequestResolver(provider, FAST_RETRY).resolve_request(_work_request()))
    assert excinfo.value.attempts == 5
    assert len(provider.calls) == 5
    assert excinfo.value.status_code == 503


def test_protocol_errors_are_not_retried(provider) -> None:
    provider.failures = [UpstreamProtocolError("bad json")]
    with pytest.raises(MalformedUpstreamResponseError):
        asyncio.run(RequestResolver(provider, FAST_RETRY).resolve_request(_work_request()))
    assert provider.calls == ["get_work"]


def test_last_updated(provider, work) -> None:
    resolver = RequestResolver(provider, FAST_RETRY)
    assert asyncio.run(resolver.last_updated(_work_request())) == work.updated_at_with_relations
    assert asyncio.run(resolver.last_updated(_publisher_request())) == work.updated_at_with_relations
    with pytest.raises(NotFoundError):
        asyncio.run(resolver.last_updated(_work_request(MISSING_WORK_ID)))
