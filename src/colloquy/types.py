"""Framework-neutral data aliases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeAlias

Activity: TypeAlias = Any
State: TypeAlias = dict[str, Any]


@dataclass(frozen=True)
class TurnResult:
    """Result of one complete turn."""

    conversation_id: str
    status: str
    result: Any = None
    outbounds: list[Activity] = field(default_factory=list)
