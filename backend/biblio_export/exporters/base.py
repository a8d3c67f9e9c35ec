"""Base encoder definitions."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Iterator, Optional, Sequence

from ..core.errors import NotFoundError, ValidationFailedError
from ..schemas.work import Work
from .vocabulary import UnmappedVocabularyError

if TYPE_CHECKING:
    from .registry import DialectDescriptor

logger = logging.getLogger(__name__)


class Encoder(ABC):
    """Renders canonical works into one dialect's bytes.

    Subclasses produce one fragment per work in ``render_work`` and join the
    fragments in ``assemble``. Both must be pure: no I/O, no shared state.
    """

    @abstractmethod
    def render_work(self, work: Work) -> Any:
        ...

    @abstractmethod
    def assemble(self, fragments: list[Any], works: Sequence[Work]) -> bytes:
        ...

    def encode(
        self,
        works: Sequence[Work],
        descriptor: DialectDescriptor,
        skip_invalid: bool = False,
    ) -> bytes:
        fragments: list[Any] = []
        accepted: list[Work] = []
        first_failure: ValidationFailedError | None = None
        for work in works:
            try:
                fragments.append(self._render_checked(work, descriptor))
            except ValidationFailedError as exc:
                if not skip_invalid:
                    raise
                logger.warning(f"Skipping work {work.work_id}: {exc.message}")
                first_failure = first_failure or exc
                continue
            accepted.append(work)
        if not fragments:
            if first_failure is not None:
                raise first_failure
            raise NotFoundError("selection", f"No works to export as {descriptor.specification}")
        return self.assemble(fragments, accepted)

    def _render_checked(self, work: Work, descriptor: DialectDescriptor) -> Any:
        missing = descriptor.contract.missing_fields(work)
        if missing:
            raise ValidationFailedError(descriptor.specification, missing_fields=missing, work_id=work.work_id)
        with vocabulary_errors(descriptor.specification, work):
            return self.render_work(work)


class InvalidFieldError(ValueError):
    """A work value the dialect's encoding cannot carry."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field


@contextmanager
def vocabulary_errors(specification: str, work: Work) -> Iterator[None]:
    """Turn an unmapped vocabulary value or an unencodable field into a validation failure."""
    try:
        yield
    except (UnmappedVocabularyError, InvalidFieldError) as exc:
        raise ValidationFailedError(specification, invalid_fields=[exc.field], work_id=work.work_id) from exc


# Code points outside the XML 1.0 Char production; MARC delimiters fall in here too
_UNSAFE_CHARACTERS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def clean_text(value: object) -> str:
    """Drop characters XML 1.0 cannot carry; vertical tab and form feed become spaces."""
    return _UNSAFE_CHARACTERS.sub(lambda m: " " if m.group() in "\x0b\x0c" else "", str(value))


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def format_date(value: date) -> str:
    """``YYYYMMDD`` as used by ONIX and MARC fixed fields."""
    return value.strftime("%Y%m%d")


def sub_element(parent: ET.Element, tag: str, text: Optional[object] = None, **attrs: str) -> ET.Element:
    element = ET.SubElement(parent, tag, {name: clean_text(value) for name, value in attrs.items()})
    if text is not None:
        element.text = clean_text(text)
    return element


def serialize_xml(root: ET.Element) -> bytes:
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="utf-8", xml_declaration=True) + b"\n"


def sent_timestamp(works: Sequence[Work]) -> Optional[datetime]:
    """Latest modification of the exported works; keeps message headers reproducible."""
    stamps = [w.updated_at_with_relations for w in works if w.updated_at_with_relations]
    return max(stamps) if stamps else None
