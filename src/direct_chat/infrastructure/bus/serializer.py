"""Fan-out bus envelope: ``{"event", "data", "targets"}``.

``targets`` is null for events addressed to every connection.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from direct_chat.application.dto.events import PushEvent
from direct_chat.domain.value_objects.enums import EventType


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def serialize_event(event: PushEvent, targets: frozenset[int] | None) -> str:
    envelope = {
        "event": event.type.value,
        "data": event.data,
        "targets": sorted(targets) if targets is not None else None,
    }
    return json.dumps(envelope, cls=_Encoder)


def deserialize_event(raw: str | bytes) -> tuple[PushEvent, frozenset[int] | None]:
    envelope = json.loads(raw)
    targets = envelope.get("targets")
    event = PushEvent(type=EventType(envelope["event"]), data=envelope["data"])
    return event, frozenset(int(t) for t in targets) if targets is not None else None
