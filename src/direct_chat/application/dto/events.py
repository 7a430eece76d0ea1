from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from direct_chat.domain.value_objects.enums import EventType


@dataclass(frozen=True, slots=True)
class PushEvent:
    """A server-pushed notification; ``data`` must be JSON-safe."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
