"""Hook execution with per-plugin fault isolation."""

from __future__ import annotations

import inspect
from collections.abc import Iterator
from typing import Any

import pluggy
from loguru import logger

from colloquy.types import Activity

_SKIP = object()


class HookRuntime:
    """Calls collaborator hooks so one failing plugin cannot break a turn.

    A raising implementation is reported to the ``on_error`` observers and
    treated as if it had returned nothing. Implementations run newest
    registration first, matching pluggy's own precedence.
    """

    def __init__(self, plugin_manager: pluggy.PluginManager) -> None:
        self._plugin_manager = plugin_manager

    async def call_first(self, hook_name: str, **kwargs: Any) -> Any:
        """Return the first non-None value produced by an implementation."""

        for impl, call_kwargs in self._bound_impls(hook_name, kwargs):
            value = await self._run_async(hook_name, impl, call_kwargs, kwargs)
            if value is not _SKIP and value is not None:
                return value
        return None

    async def call_many(self, hook_name: str, **kwargs: Any) -> list[Any]:
        """Run every implementation and collect the values of those that succeeded."""

        results: list[Any] = []
        for impl, call_kwargs in self._bound_impls(hook_name, kwargs):
            value = await self._run_async(hook_name, impl, call_kwargs, kwargs)
            if value is not _SKIP:
                results.append(value)
        return results

    def call_first_sync(self, hook_name: str, **kwargs: Any) -> Any:
        """Synchronous `call_first` for bootstrap hooks such as ``provide_storage``."""

        for impl, call_kwargs in self._bound_impls(hook_name, kwargs):
            value = self._run_sync(hook_name, impl, call_kwargs, kwargs)
            if value is not _SKIP and value is not None:
                return value
        return None

    def call_many_sync(self, hook_name: str, **kwargs: Any) -> list[Any]:
        results: list[Any] = []
        for impl, call_kwargs in self._bound_impls(hook_name, kwargs):
            value = self._run_sync(hook_name, impl, call_kwargs, kwargs)
            if value is not _SKIP:
                results.append(value)
        return results

    async def notify_error(self, *, stage: str, error: Exception, message: Activity | None) -> None:
        """Tell every ``on_error`` observer; observer failures are only logged."""

        payload = {"stage": stage, "error": error, "message": message}
        for impl, call_kwargs in self._bound_impls("on_error", payload):
            try:
                value = impl.function(**call_kwargs)
                if inspect.isawaitable(value):
                    await value
            except Exception:
                logger.opt(exception=True).warning("hook.on_error_failed stage={} plugin={}", stage, _plugin_name(impl))

    def notify_error_sync(self, *, stage: str, error: Exception, message: Activity | None) -> None:
        payload = {"stage": stage, "error": error, "message": message}
        for impl, call_kwargs in self._bound_impls("on_error", payload):
            try:
                value = impl.function(**call_kwargs)
            except Exception:
                logger.opt(exception=True).warning("hook.on_error_failed stage={} plugin={}", stage, _plugin_name(impl))
                continue
            if inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                logger.warning("hook.async_not_supported hook=on_error plugin={}", _plugin_name(impl))

    def hook_report(self) -> dict[str, list[str]]:
        """Map each implemented hook to the plugins implementing it."""

        report: dict[str, list[str]] = {}
        for hook_name in sorted(vars(self._plugin_manager.hook)):
            if hook_name.startswith("_"):
                continue
            plugins = [_plugin_name(impl) for impl in self._hookimpls(hook_name)]
            if plugins:
                report[hook_name] = plugins
        return report

    async def _run_async(self, hook_name: str, impl: Any, call_kwargs: dict[str, Any], kwargs: dict[str, Any]) -> Any:
        try:
            value = impl.function(**call_kwargs)
            if inspect.isawaitable(value):
                value = await value
        except Exception as error:
            await self.notify_error(stage=f"{hook_name}:{_plugin_name(impl)}", error=error, message=kwargs.get("message"))
            return _SKIP
        return value

    def _run_sync(self, hook_name: str, impl: Any, call_kwargs: dict[str, Any], kwargs: dict[str, Any]) -> Any:
        try:
            value = impl.function(**call_kwargs)
        except Exception as error:
            self.notify_error_sync(stage=f"{hook_name}:{_plugin_name(impl)}", error=error, message=kwargs.get("message"))
            return _SKIP
        if inspect.isawaitable(value):
            if inspect.iscoroutine(value):
                value.close()
            logger.warning("hook.async_not_supported hook={} plugin={}", hook_name, _plugin_name(impl))
            return _SKIP
        return value

    def _bound_impls(self, hook_name: str, kwargs: dict[str, Any]) -> Iterator[tuple[Any, dict[str, Any]]]:
        for impl in self._hookimpls(hook_name):
            yield impl, {name: kwargs[name] for name in impl.argnames if name in kwargs}

    def _hookimpls(self, hook_name: str) -> list[Any]:
        caller = getattr(self._plugin_manager.hook, hook_name, None)
        if caller is None or not hasattr(caller, "get_hookimpls"):
            return []
        return list(reversed(caller.get_hookimpls()))


def _plugin_name(impl: Any) -> str:
    return impl.plugin_name or "<unknown>"
