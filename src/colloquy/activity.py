"""Utilities for reading and normalizing user-defined activities."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from colloquy.types import Activity


class ActivityTypes:
    MESSAGE = "message"
    EVENT = "event"
    CONVERSATION_UPDATE = "conversationUpdate"
    TYPING = "typing"


class InputHints:
    ACCEPTING_INPUT = "acceptingInput"
    EXPECTING_INPUT = "expectingInput"
    IGNORING_INPUT = "ignoringInput"


def field_of(activity: Activity, key: str, default: Any = None) -> Any:
    """Read a field from mapping-like or attribute-based activities."""

    if isinstance(activity, Mapping):
        return activity.get(key, default)
    return getattr(activity, key, default)


def activity_type_of(activity: Activity) -> str:
    """Get the type discriminator; activities without one are messages."""

    return str(field_of(activity, "type", ActivityTypes.MESSAGE) or ActivityTypes.MESSAGE)


def text_of(activity: Activity) -> str:
    """Get textual content from any activity shape."""

    text = field_of(activity, "text")
    if text is None:
        text = field_of(activity, "content", "")
    return str(text)


def normalize_activity(activity: Activity) -> dict[str, Any]:
    """Convert arbitrary activity objects to a mutable activity mapping."""

    if isinstance(activity, Mapping):
        normalized = dict(activity)
    elif hasattr(activity, "__dict__"):
        normalized = dict(vars(activity))
    else:
        normalized = {"text": str(activity)}
    normalized.setdefault("type", ActivityTypes.MESSAGE)
    return normalized


def message_activity(content: Any, input_hint: str | None = None) -> dict[str, Any]:
    """Build an outbound message activity from text or a partial activity mapping."""

    if isinstance(content, Mapping):
        outbound = dict(content)
        outbound.setdefault("type", ActivityTypes.MESSAGE)
    else:
        outbound = {"type": ActivityTypes.MESSAGE, "text": str(content)}
    if input_hint is not None and not isinstance(outbound.get("input_hint"), str):
        outbound["input_hint"] = input_hint
    return outbound
