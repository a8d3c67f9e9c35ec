"""Export orchestration: resolve, look up the dialect, encode."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..core.config import Settings, get_settings
from ..core.errors import ExportError
from ..exporters.base import sent_timestamp
from ..exporters.registry import DialectDescriptor, DialectRegistry, build_registry
from ..schemas.request import EncodedOutput, ExportRequest, WorkSelector
from .resolver import RequestResolver
from .retry import RetryPolicy
from .upstream import GraphQLMetadataProvider

logger = logging.getLogger(__name__)


def output_filename(descriptor: DialectDescriptor, request: ExportRequest) -> str:
    selector = request.selector
    if isinstance(selector, WorkSelector):
        subject = str(selector.work_id)
    else:
        subject = "_".join(str(p) for p in selector.publisher_ids)
    return f"{descriptor.family.value}__{descriptor.dialect.value}__{subject}.{descriptor.file_extension}"


class ExportCoordinator:
    """Runs one export request end to end.

    The works are fetched before the dialect is looked up, so a request for a
    missing work reports it as missing whatever specification it names.
    """

    def __init__(self, resolver: RequestResolver, registry: DialectRegistry) -> None:
        self.resolver = resolver
        self.registry = registry

    async def export(self, request: ExportRequest) -> EncodedOutput:
        try:
            works = await self.resolver.resolve_request(request)
            descriptor = self.registry.resolve(request.family, request.dialect)
            content = descriptor.encoder.encode(works, descriptor, skip_invalid=request.is_collection)
        except ExportError as exc:
            logger.info(f"Export {request.specification} for {request.selector.describe()} failed: {exc.message}")
            raise
        logger.info(
            f"Exported {len(works)} work(s) as {descriptor.specification} ({len(content)} bytes) "
            f"for {request.selector.describe()}"
        )
        return EncodedOutput(
            content=content,
            content_type=descriptor.content_type,
            request=request,
            filename=output_filename(descriptor, request),
            last_modified=sent_timestamp(works),
        )

    async def last_updated(self, request: ExportRequest) -> Optional[datetime]:
        """Modification time of the selected works, for conditional requests."""
        stamp = await self.resolver.last_updated(request)
        self.registry.resolve(request.family, request.dialect)
        return stamp


_EXPORT_COORDINATOR_SINGLETON: ExportCoordinator | None = None


def build_export_coordinator(settings: Settings) -> ExportCoordinator:
    provider = GraphQLMetadataProvider(settings.graphql_endpoint, timeout=settings.request_timeout_seconds)
    policy = RetryPolicy(
        max_attempts=settings.max_request_attempts,
        base_delay=settings.backoff_base_seconds,
        multiplier=settings.backoff_multiplier,
        max_delay=settings.backoff_max_seconds,
    )
    return ExportCoordinator(RequestResolver(provider, policy), build_registry(settings))


def get_export_coordinator() -> ExportCoordinator:
    global _EXPORT_COORDINATOR_SINGLETON
    if _EXPORT_COORDINATOR_SINGLETON is None:
        _EXPORT_COORDINATOR_SINGLETON = build_export_coordinator(get_settings())
    return _EXPORT_COORDINATOR_SINGLETON


def set_export_coordinator(coordinator: ExportCoordinator) -> None:
    global _EXPORT_COORDINATOR_SINGLETON
    _EXPORT_COORDINATOR_SINGLETON = coordinator


def reset_export_coordinator() -> None:
    global _EXPORT_COORDINATOR_SINGLETON
    _EXPORT_COORDINATOR_SINGLETON = None
