"""Turns export requests into canonical works."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

from ..core.errors import MalformedUpstreamResponseError, NotFoundError, UpstreamUnavailableError
from ..schemas.request import ExportRequest, PublisherSelector, WorkSelector
from ..schemas.work import Work
from .retry import RetryExhaustedError, RetryPolicy, retry_async
from .upstream import MetadataProvider, TransientUpstreamError, UpstreamNotFoundError, UpstreamProtocolError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def collection_order(works: list[Work]) -> list[Work]:
    """Most recently updated first, ties broken by work id."""
    by_id = sorted(works, key=lambda w: str(w.work_id))
    return sorted(
        by_id,
        key=lambda w: w.updated_at_with_relations.timestamp() if w.updated_at_with_relations else float("-inf"),
        reverse=True,
    )


class RequestResolver:
    """Fetches the works a request selects, retrying transient failures."""

    def __init__(self, provider: MetadataProvider, policy: Optional[RetryPolicy] = None) -> None:
        self.provider = provider
        self.policy = policy or RetryPolicy()

    async def resolve_request(self, request: ExportRequest) -> list[Work]:
        selector = request.selector
        if isinstance(selector, WorkSelector):
            work = await self._call(lambda: self.provider.get_work(selector.work_id), selector.describe())
            return [work]
        works = await self._call(
            lambda: self.provider.get_works(selector.publisher_ids, selector.limit, selector.offset),
            selector.describe(),
        )
        if not works:
            raise NotFoundError(selector.describe(), f"No works found for {selector.describe()}")
        return collection_order(works)

    async def last_updated(self, request: ExportRequest) -> Optional[datetime]:
        selector = request.selector
        if isinstance(selector, PublisherSelector):
            return await self._call(
                lambda: self.provider.get_works_last_updated(selector.publisher_ids),
                selector.describe(),
            )
        return await self._call(lambda: self.provider.get_work_last_updated(selector.work_id), selector.describe())

    async def _call(self, operation: Callable[[], Awaitable[T]], identity: str) -> T:
        try:
            return await retry_async(operation, self.policy, retry_on=(TransientUpstreamError,))
        except RetryExhaustedError as exc:
            logger.error(f"Metadata provider unavailable for {identity}: {exc.last_error}")
            raise UpstreamUnavailableError(str(exc.last_error), exc.attempts) from exc
        except UpstreamNotFoundError as exc:
            raise NotFoundError(identity, f"Not found: {identity}") from exc
        except UpstreamProtocolError as exc:
            logger.error(f"Malformed response for {identity}: {exc}")
            raise MalformedUpstreamResponseError(str(exc)) from exc
