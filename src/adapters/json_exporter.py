"""JSON export of ownership records and verification reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel


def export_json(*, payload: BaseModel | Sequence[BaseModel], output_path: Path) -> Path:
    """Export `payload` as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, BaseModel):
        data: object = payload.model_dump(mode="json")
    else:
        data = [item.model_dump(mode="json") for item in payload]
    output_path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
