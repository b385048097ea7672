"""Hook-first turn driver around the dialog engine."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, cast

import pluggy
from loguru import logger

from colloquy.activity import field_of, normalize_activity
from colloquy.bus import BusProtocol
from colloquy.config import Settings, get_settings
from colloquy.dialogs import Dialog, DialogSet, DialogState, run_dialog_turn
from colloquy.hook_runtime import HookRuntime
from colloquy.hookspecs import COLLOQUY_HOOK_NAMESPACE, ColloquyHookSpecs
from colloquy.logging_utils import conversation_scope
from colloquy.state import StateMap
from colloquy.storage import MemoryStorage, Storage, conversation_key, user_key
from colloquy.turn import TurnContext
from colloquy.types import Activity, TurnResult

DIALOG_STATE_FIELD = "dialog_state"
VALUES_FIELD = "values"


class DialogFramework:
    """Runs one root dialog for every conversation it sees.

    Each turn loads the conversation and user records, drives the dialog
    stack, and writes both records back in one storage call only when the
    turn finished without raising. Turns of the same conversation are run
    one at a time in arrival order.
    """

    def __init__(self, root_dialog: Dialog, *, settings: Settings | None = None, root_options: Any = None) -> None:
        self.settings = settings or get_settings()
        self.root_dialog = root_dialog
        self.root_options = root_options
        self.dialogs = DialogSet([root_dialog])
        self._plugin_manager = pluggy.PluginManager(COLLOQUY_HOOK_NAMESPACE)
        self._plugin_manager.add_hookspecs(ColloquyHookSpecs)
        self._hook_runtime = HookRuntime(self._plugin_manager)
        self._storage: Storage | None = None
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    @property
    def plugin_manager(self) -> pluggy.PluginManager:
        return self._plugin_manager

    def load_hooks(self) -> None:
        """Register the builtin plugin, then plugins published as ``colloquy`` entry points."""

        from colloquy.builtin.plugin import BuiltinPlugin

        if self._plugin_manager.get_plugin("builtin") is None:
            self._plugin_manager.register(BuiltinPlugin(self.settings), name="builtin")
        loaded = self._plugin_manager.load_setuptools_entrypoints(COLLOQUY_HOOK_NAMESPACE)
        logger.debug("hooks.loaded entrypoints={}", loaded)

    def register(self, plugin: object, name: str | None = None) -> None:
        self._plugin_manager.register(plugin, name=name)

    @property
    def storage(self) -> Storage:
        if self._storage is None:
            self._storage = self.create_storage()
        return self._storage

    def create_storage(self) -> Storage:
        """Create storage from hooks; fallback to in-memory storage."""

        provided = self._hook_runtime.call_first_sync("provide_storage")
        if self._is_storage_like(provided):
            return cast(Storage, provided)
        return MemoryStorage()

    def register_cli_commands(self, app: Any) -> None:
        """Ask plugins to register CLI commands."""

        self._hook_runtime.call_many_sync("register_cli_commands", app=app)

    async def process_turn(self, inbound: Activity) -> TurnResult:
        """Run one inbound activity through the dialog stack of its conversation."""

        try:
            normalized = await self._hook_runtime.call_first("normalize_inbound", message=inbound)
            message = normalized if normalized is not None else normalize_activity(inbound)
            conversation_id = await self._hook_runtime.call_first(
                "resolve_conversation", message=message
            ) or self._default_conversation_id(message)
            user_id = await self._hook_runtime.call_first("resolve_user", message=message) or self._default_user_id(message)

            async with self._conversation_lock(conversation_id):
                with conversation_scope(conversation_id):
                    context, status, result = await self._run_locked(message, str(conversation_id), str(user_id))

            outbounds = context.outbounds
            for outbound in outbounds:
                await self._hook_runtime.call_many("dispatch_outbound", message=outbound)
            return TurnResult(conversation_id=context.conversation_id, status=status, result=result, outbounds=outbounds)
        except Exception as exc:
            await self._hook_runtime.notify_error(stage="turn", error=exc, message=inbound)
            raise

    async def handle_bus_once(self, bus: BusProtocol, *, timeout_seconds: float | None = None) -> TurnResult | None:
        """Consume one inbound activity from the bus and publish the turn's outbounds."""

        inbound = await bus.next_inbound(timeout_seconds=timeout_seconds)
        if inbound is None:
            return None
        result = await self.process_turn(inbound)
        for outbound in result.outbounds:
            await bus.publish_outbound(outbound)
        return result

    def hook_report(self) -> dict[str, list[str]]:
        """Return hook implementation summary for diagnostics."""

        return self._hook_runtime.hook_report()

    @asynccontextmanager
    async def _conversation_lock(self, conversation_id: str) -> AsyncIterator[None]:
        # Entries live only while a turn of the conversation is running or queued.
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if self._lock_users[conversation_id] == 0:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    async def _run_locked(self, message: Activity, conversation_id: str, user_id: str) -> tuple[TurnContext, str, Any]:
        conv_key = conversation_key(conversation_id)
        usr_key = user_key(user_id)
        records = await self.storage.read([conv_key, usr_key])
        conversation_record = records.get(conv_key, {})
        dialog_state = DialogState.model_validate(conversation_record.get(DIALOG_STATE_FIELD) or {})
        conversation = StateMap(dict(conversation_record.get(VALUES_FIELD) or {}))
        user = StateMap(dict(records.get(usr_key, {})))

        context = TurnContext(message, conversation_id=conversation_id, user_id=user_id)
        logger.info("turn.start type={} depth={}", context.activity_type, len(dialog_state.dialog_stack))
        outcome = await run_dialog_turn(
            self.dialogs,
            self.root_dialog.id,
            context,
            dialog_state,
            user=user,
            conversation=conversation,
            options=self.root_options,
        )

        await self.storage.write(
            {
                conv_key: {
                    DIALOG_STATE_FIELD: dialog_state.model_dump(mode="json"),
                    VALUES_FIELD: conversation.data,
                },
                usr_key: user.data,
            }
        )
        logger.info("turn.commit status={} depth={}", outcome.status.value, len(dialog_state.dialog_stack))
        return context, outcome.status.value, outcome.result

    @staticmethod
    def _default_conversation_id(message: Activity) -> str:
        conversation_id = field_of(message, "conversation_id")
        if conversation_id is not None and str(conversation_id).strip():
            return str(conversation_id).strip()
        channel = str(field_of(message, "channel", "default"))
        chat_id = str(field_of(message, "chat_id", "default"))
        return f"{channel}:{chat_id}"

    @staticmethod
    def _default_user_id(message: Activity) -> str:
        return str(field_of(message, "sender_id", "anonymous"))

    @staticmethod
    def _is_storage_like(candidate: Any) -> bool:
        if candidate is None:
            return False
        required = ("read", "write", "delete")
        return all(callable(getattr(candidate, name, None)) for name in required)
