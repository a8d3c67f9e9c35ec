"""GraphQL metadata provider client."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence
from uuid import UUID

import httpx
from pydantic import TypeAdapter, ValidationError

from ..schemas.work import Work

logger = logging.getLogger(__name__)

WORK_FIELDS = """
fragment WorkFields on Work {
  workId
  workType
  workStatus
  fullTitle
  title
  subtitle
  edition
  doi
  publicationDate
  place
  pageCount
  longAbstract
  shortAbstract
  license
  copyrightHolder
  landingPage
  coverUrl
  lccn
  oclc
  updatedAtWithRelations
  imprint {
    imprintId
    imprintName
    imprintUrl
    publisher { publisherId publisherName publisherShortname publisherUrl }
  }
  contributions {
    contributionId
    contributorId
    contributionType
    firstName
    lastName
    fullName
    mainContribution
    biography
    contributionOrdinal
    contributor { orcid }
  }
  subjects { subjectId subjectType subjectCode subjectOrdinal }
  languages { languageId languageCode languageRelation mainLanguage }
  issues {
    issueId
    issueOrdinal
    series { seriesId seriesType seriesName issnPrint issnDigital seriesUrl }
  }
  publications {
    publicationId
    publicationType
    isbn
    widthMm
    heightMm
    depthMm
    weightG
    prices { priceId currencyCode unitPrice }
    locations { locationId landingPage fullTextUrl locationPlatform canonical }
  }
}
"""

WORK_QUERY = (
    WORK_FIELDS
    + """
query WorkQuery($workId: Uuid!) {
  work(workId: $workId) { ...WorkFields }
}
"""
)

WORKS_QUERY = (
    WORK_FIELDS
    + """
query WorksQuery($publishers: [Uuid!], $limit: Int!, $offset: Int!) {
  works(
    publishers: $publishers
    limit: $limit
    offset: $offset
    order: {field: UPDATED_AT_WITH_RELATIONS, direction: DESC}
  ) { ...WorkFields }
}
"""
)

WORK_LAST_UPDATED_QUERY = """
query WorkLastUpdatedQuery($workId: Uuid!) {
  work(workId: $workId) { updatedAtWithRelations }
}
"""

WORKS_LAST_UPDATED_QUERY = """
query WorksLastUpdatedQuery($publishers: [Uuid!]) {
  works(
    publishers: $publishers
    limit: 1
    order: {field: UPDATED_AT_WITH_RELATIONS, direction: DESC}
  ) { updatedAtWithRelations }
}
"""

_WORKS = TypeAdapter(list[Work])
_TIMESTAMP = TypeAdapter(Optional[datetime])


class UpstreamError(Exception):
    """Base class for failures talking to the metadata provider."""


class TransientUpstreamError(UpstreamError):
    """The request may succeed if repeated."""


class UpstreamNotFoundError(UpstreamError):
    """The requested entity does not exist upstream."""


class UpstreamProtocolError(UpstreamError):
    """The provider answered with something that cannot be used."""


class MetadataProvider(Protocol):
    async def get_work(self, work_id: UUID) -> Work:
        ...

    async def get_works(self, publishers: Sequence[UUID], limit: int, offset: int) -> list[Work]:
        ...

    async def get_work_last_updated(self, work_id: UUID) -> Optional[datetime]:
        ...

    async def get_works_last_updated(self, publishers: Sequence[UUID]) -> Optional[datetime]:
        ...


def _is_not_found(errors: list[Any]) -> bool:
    for error in errors:
        message = str(error.get("message", "")) if isinstance(error, dict) else str(error)
        if "notfound" in message.lower().replace(" ", ""):
            return True
    return False


def _flatten_contributions(payload: Any) -> Any:
    """Lift ``contributor.orcid`` onto the contribution, where the model keeps it."""
    works = payload if isinstance(payload, list) else [payload]
    for work in works:
        if not isinstance(work, dict):
            continue
        for contribution in work.get("contributions") or []:
            if isinstance(contribution, dict) and "contributor" in contribution:
                contributor = contribution.pop("contributor") or {}
                contribution.setdefault("orcid", contributor.get("orcid"))
    return payload


class GraphQLMetadataProvider:
    """Fetches canonical works from a GraphQL endpoint over ``httpx``.

    Failures are classified into the ``UpstreamError`` subclasses so callers
    can decide what to retry; nothing is retried here.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    async def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, json={"query": query, "variables": variables})
        except httpx.TransportError as exc:
            raise TransientUpstreamError(f"{type(exc).__name__}: {exc}") from exc

        status = response.status_code
        if status == 429 or status >= 500:
            raise TransientUpstreamError(f"HTTP {status} from {self.endpoint}")
        if status >= 400:
            raise UpstreamProtocolError(f"HTTP {status} from {self.endpoint}")
        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamProtocolError(f"undecodable JSON body: {exc}") from exc
        if not isinstance(body, dict):
            raise UpstreamProtocolError("response body is not a JSON object")

        errors = body.get("errors") or []
        if errors:
            if _is_not_found(errors):
                raise UpstreamNotFoundError(str(errors[0]))
            raise UpstreamProtocolError(f"GraphQL errors: {errors}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise UpstreamProtocolError("response carries no data")
        return data

    async def get_work(self, work_id: UUID) -> Work:
        data = await self._post(WORK_QUERY, {"workId": str(work_id)})
        payload = data.get("work")
        if payload is None:
            raise UpstreamNotFoundError(f"work {work_id}")
        try:
            return Work.model_validate(_flatten_contributions(payload))
        except ValidationError as exc:
            raise UpstreamProtocolError(f"work {work_id} failed validation: {exc}") from exc

    async def get_works(self, publishers: Sequence[UUID], limit: int, offset: int) -> list[Work]:
        variables = {"publishers": [str(p) for p in publishers], "limit": limit, "offset": offset}
        data = await self._post(WORKS_QUERY, variables)
        payload = data.get("works")
        if not isinstance(payload, list):
            raise UpstreamProtocolError("works query did not return a list")
        try:
            works = _WORKS.validate_python(_flatten_contributions(payload))
        except ValidationError as exc:
            raise UpstreamProtocolError(f"works failed validation: {exc}") from exc
        logger.debug(f"Fetched {len(works)} work(s) for {len(publishers)} publisher(s)")
        return works

    async def get_work_last_updated(self, work_id: UUID) -> Optional[datetime]:
        data = await self._post(WORK_LAST_UPDATED_QUERY, {"workId": str(work_id)})
        payload = data.get("work")
        if payload is None:
            raise UpstreamNotFoundError(f"work {work_id}")
        return self._timestamp(payload)

    async def get_works_last_updated(self, publishers: Sequence[UUID]) -> Optional[datetime]:
        data = await self._post(WORKS_LAST_UPDATED_QUERY, {"publishers": [str(p) for p in publishers]})
        payload = data.get("works")
        if not isinstance(payload, list):
            raise UpstreamProtocolError("works query did not return a list")
        return self._timestamp(payload[0]) if payload else None

    @staticmethod
    def _timestamp(payload: Any) -> Optional[datetime]:
        if not isinstance(payload, dict):
            raise UpstreamProtocolError("timestamp payload is not an object")
        try:
            return _TIMESTAMP.validate_python(payload.get("updatedAtWithRelations"))
        except ValidationError as exc:
            raise UpstreamProtocolError(f"invalid timestamp: {exc}") from exc
