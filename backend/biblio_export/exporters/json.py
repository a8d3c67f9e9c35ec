"""JSON encoder."""

from __future__ import annotations

import json
from typing import Any, Sequence

from ..schemas.work import Work
from . import contracts as req
from .base import Encoder

CONTRACT = req.contract(req.WORK_ID, req.TITLE)


def _ordered_copy(work: Work) -> Work:
    """Same work with every repeated relation in its serialisation order."""
    return work.model_copy(
        update={
            "contributions": work.ordered_contributions(),
            "subjects": work.ordered_subjects(),
            "languages": work.ordered_languages(),
            "issues": work.ordered_issues(),
            "publications": [
                publication.model_copy(update={"prices": publication.ordered_prices()})
                for publication in work.ordered_publications()
            ],
        }
    )


class JsonEncoder(Encoder):
    def render_work(self, work: Work) -> dict[str, Any]:
        return _ordered_copy(work).model_dump(mode="json", by_alias=True)

    def assemble(self, fragments: list[dict[str, Any]], works: Sequence[Work]) -> bytes:
        text = json.dumps(fragments, sort_keys=True, indent=2, ensure_ascii=False)
        return (text + "\n").encode("utf-8")
