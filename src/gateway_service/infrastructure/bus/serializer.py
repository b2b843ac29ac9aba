from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        if is_dataclass(o) and not isinstance(o, type):
            return asdict(o)
        return super().default(o)


def serialize_event(event_type: str, payload: Any) -> str:
    envelope = {"type": event_type, "data": payload}
    return json.dumps(envelope, cls=_Encoder)


def deserialize_event(raw: str | bytes) -> tuple[str, Any]:
    data = json.loads(raw)
    return data["type"], data["data"]


def to_jsonable(payload: Any) -> Any:
    """Round-trip through the encoder so datetimes/dataclasses become plain JSON."""
    return json.loads(json.dumps(payload, cls=_Encoder))
