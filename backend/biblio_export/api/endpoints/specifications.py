"""Metadata export endpoints."""

from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status

from ...core.config import settings
from ...core.errors import ExportError
from ...schemas.api import SpecificationSummary
from ...schemas.request import EncodedOutput, ExportRequest, PublisherSelector, Selector, WorkSelector
from ...services import ExportCoordinator, get_export_coordinator

router = APIRouter()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_http_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return _as_utc(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        # Unparseable validators are ignored, as HTTP prescribes
        return None


def _to_http_exception(exc: ExportError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_payload())


def _file_response(output: EncodedOutput) -> Response:
    headers = {"Content-Disposition": f'attachment; filename="{output.filename}"'}
    if output.last_modified:
        headers["Last-Modified"] = format_datetime(_as_utc(output.last_modified), usegmt=True)
    return Response(content=output.content, media_type=output.content_type, headers=headers)


async def _export(
    specification: str,
    selector: Selector,
    coordinator: ExportCoordinator,
    if_modified_since: Optional[str],
) -> Response:
    request = ExportRequest.parse(specification, selector)
    try:
        since = _parse_http_date(if_modified_since)
        if since is not None:
            stamp = await coordinator.last_updated(request)
            # HTTP dates carry whole seconds only
            if stamp is not None and _as_utc(stamp).replace(microsecond=0) <= since:
                return Response(status_code=status.HTTP_304_NOT_MODIFIED)
        output = await coordinator.export(request)
    except ExportError as exc:
        raise _to_http_exception(exc)
    return _file_response(output)


@router.get("/", response_model=list[SpecificationSummary], summary="List supported specifications")
def list_specifications(
    coordinator: ExportCoordinator = Depends(get_export_coordinator),
) -> list[SpecificationSummary]:
    return [
        SpecificationSummary(
            specification=descriptor.specification,
            family=descriptor.family.value,
            dialect=descriptor.dialect.value,
            content_type=descriptor.content_type,
            file_extension=descriptor.file_extension,
            required_fields=list(descriptor.contract.fields()),
        )
        for descriptor in coordinator.registry.descriptors()
    ]


@router.get(
    "/{specification}/work/{work_id}",
    summary="Export one work",
    responses={304: {"description": "Not modified"}},
)
async def export_work(
    specification: str,
    work_id: UUID,
    if_modified_since: Optional[str] = Header(default=None),
    coordinator: ExportCoordinator = Depends(get_export_coordinator),
) -> Response:
    return await _export(specification, WorkSelector(work_id), coordinator, if_modified_since)


@router.get(
    "/{specification}/publisher/{publisher_id}",
    summary="Export a page of a publisher's works",
    responses={304: {"description": "Not modified"}},
)
async def export_publisher(
    specification: str,
    publisher_id: UUID,
    limit: int = Query(default=settings.default_page_limit, ge=1, le=settings.max_page_limit),
    offset: int = Query(default=0, ge=0),
    if_modified_since: Optional[str] = Header(default=None),
    coordinator: ExportCoordinator = Depends(get_export_coordinator),
) -> Response:
    selector = PublisherSelector((publisher_id,), limit=limit, offset=offset)
    return await _export(specification, selector, coordinator, if_modified_since)
