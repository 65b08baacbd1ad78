"""Shared JSON codec for every JSON body written by the server."""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
from enum import Enum
from pathlib import PurePath
from typing import Any

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


class JsonCodec:
    """Serialize response payloads, including temporal and path values."""

    def encode(self, payload: Any) -> bytes:
        return json.dumps(
            payload,
            default=self._default,
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")

    @staticmethod
    def _default(value: Any) -> Any:
        if isinstance(value, dt.datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=dt.timezone.utc)
            return value.isoformat()
        if isinstance(value, (dt.date, dt.time)):
            return value.isoformat()
        if isinstance(value, PurePath):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (set, frozenset)):
            return sorted(value)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return dataclasses.asdict(value)
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
