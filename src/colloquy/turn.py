"""Per-turn context handed to every dialog operation."""

from __future__ import annotations

from typing import Any

from loguru import logger

from colloquy.activity import activity_type_of, field_of, message_activity, text_of
from colloquy.types import Activity


class TurnContext:
    """Inbound activity plus the outbound activities produced by one turn."""

    def __init__(self, activity: Activity, *, conversation_id: str, user_id: str) -> None:
        self.activity = activity
        self.conversation_id = conversation_id
        self.user_id = user_id
        self.responded = False
        self._outbounds: list[dict[str, Any]] = []

    @property
    def activity_type(self) -> str:
        return activity_type_of(self.activity)

    @property
    def text(self) -> str:
        return text_of(self.activity)

    @property
    def outbounds(self) -> list[dict[str, Any]]:
        return list(self._outbounds)

    async def send_activity(self, content: Any, input_hint: str | None = None) -> dict[str, Any]:
        """Queue one outbound activity addressed back to the inbound conversation."""

        outbound = message_activity(content, input_hint)
        for key in ("channel", "chat_id"):
            value = field_of(self.activity, key)
            if value is not None:
                outbound.setdefault(key, value)
        outbound.setdefault("conversation_id", self.conversation_id)
        self._outbounds.append(outbound)
        self.responded = True
        logger.debug("turn.send conversation={} hint={}", self.conversation_id, outbound.get("input_hint"))
        return outbound
