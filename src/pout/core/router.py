"""Router with a plugin pipeline.

``Router`` adds plugins to :class:`BaseRouter`. A plugin class is registered
once, process-wide, under its ``plugin_code``; ``router.plug(code, **config)``
then attaches an instance to one router, where it wraps every handler,
including the ones registered before it was plugged. An attached plugin is
reachable as an attribute named after its code (``router.logging``).

Handlers are wrapped in attachment order: the first plugin plugged is the
outermost layer. Each layer is skipped for handlers the plugin is disabled
for, so the handler (and its ``next_``) still runs.

Registration options named ``<code>_<option>`` configure plugin ``code`` for
the handlers of that ``register()`` call only::

    router = Router("app").plug("logging")
    router.register("/health", ping, logging_before=False)

Options for a plugin that is not plugged yet are kept on the handler entry
and applied when it is.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from genro_toolbox import dictExtract

from pout.core.base_router import BaseRouter
from pout.plugins._base_plugin import BasePlugin, HandlerEntry

__all__ = ["Router"]

_PLUGIN_REGISTRY: dict[str, type[BasePlugin]] = {}


def _gated(plugin: BasePlugin, entry: HandlerEntry, layer: Callable, inner: Callable) -> Callable:
    def run(ctx: Any, next_: Callable[[], None]) -> Any:
        if plugin.enabled_for(entry.name):
            return layer(ctx, next_)
        return inner(ctx, next_)

    return run


class Router(BaseRouter):
    """BaseRouter with plugins wrapped around its handlers."""

    __slots__ = BaseRouter.__slots__ + ("_plugins",)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._plugins: dict[str, BasePlugin] = {}
        super().__init__(*args, **kwargs)

    @classmethod
    def register_plugin(cls, plugin_class: type[BasePlugin]) -> None:
        """Make ``plugin_class`` pluggable by its ``plugin_code``.

        Raises:
            TypeError: If ``plugin_class`` is not a BasePlugin subclass.
            ValueError: If it has no ``plugin_code`` or another class holds it.
        """
        if not (isinstance(plugin_class, type) and issubclass(plugin_class, BasePlugin)):
            raise TypeError(f"{plugin_class!r} is not a BasePlugin subclass")
        code = plugin_class.plugin_code
        if not code:
            raise ValueError(f"{plugin_class.__name__} has no plugin_code")
        holder = _PLUGIN_REGISTRY.setdefault(code, plugin_class)
        if holder is not plugin_class:
            raise ValueError(f"Plugin code '{code}' is taken by {holder.__name__}")

    def plug(self, plugin: str, **config: Any) -> Router:
        """Attach the plugin registered as ``plugin`` and return the router.

        Raises:
            TypeError: If ``plugin`` is not a plugin code string.
            ValueError: If no plugin has that code or it is already attached.
        """
        if not isinstance(plugin, str):
            raise TypeError(f"plug() takes a plugin code, got {type(plugin).__name__}")
        plugin_class = _PLUGIN_REGISTRY.get(plugin)
        if plugin_class is None:
            known = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(f"Unknown plugin '{plugin}' (registered: {known})")
        if plugin in self._plugins:
            raise ValueError(f"Plugin '{plugin}' is already plugged into {self!r}")
        instance = plugin_class(self, **config)
        self._plugins[plugin] = instance
        for entry in self._entries:
            self._attach(instance, entry)
        self._rebuild_handlers()
        return self

    def _plugin(self, name: str) -> BasePlugin:
        try:
            return self._plugins[name]
        except KeyError:
            raise AttributeError(f"No plugin '{name}' plugged into {self!r}") from None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._plugin(name)

    def set_plugin_enabled(self, handler_name: str, plugin_name: str, enabled: bool = True) -> None:
        """Switch ``plugin_name`` on or off for the handlers named ``handler_name``."""
        self._plugin(plugin_name).switch(handler_name, enabled)

    def is_plugin_enabled(self, handler_name: str, plugin_name: str) -> bool:
        """Whether ``plugin_name`` wraps ``handler_name`` on the next dispatch.

        A switch set with :meth:`set_plugin_enabled` wins; otherwise the
        ``enabled`` option decides, handler settings over router settings.
        """
        return self._plugin(plugin_name).enabled_for(handler_name)

    # ------------------------------------------------------------------
    # BaseRouter hooks
    # ------------------------------------------------------------------
    def _split_plugin_options(self, options: dict[str, Any]) -> dict[str, dict[str, Any]]:
        remaining = dict(options)
        claimed: dict[str, dict[str, Any]] = {}
        for code in _PLUGIN_REGISTRY:
            found = dictExtract(remaining, f"{code}_", slice_prefix=True, pop=False)
            if found:
                claimed[code] = dict(found)
                for option in found:
                    del remaining[f"{code}_{option}"]
        return claimed | super()._split_plugin_options(remaining)

    def _wrap_handler(self, entry: HandlerEntry, call_next: Callable) -> Callable:
        wrapped = call_next
        for plugin in reversed(self._plugins.values()):
            wrapped = _gated(plugin, entry, plugin.wrap_handler(entry, wrapped), wrapped)
        return wrapped

    def _attach(self, plugin: BasePlugin, entry: HandlerEntry) -> None:
        options = entry.metadata.get("plugin_config", {}).get(plugin.name)
        if options:
            plugin.configure(_target=entry.name, **options)
        entry.plugins.append(plugin.name)
        plugin.on_register(entry)

    def _after_entry_registered(self, entry: HandlerEntry) -> None:
        for plugin in self._plugins.values():
            self._attach(plugin, entry)

    def _describe_entry_extra(
        self, entry: HandlerEntry, base_description: dict[str, Any]
    ) -> dict[str, Any]:
        plugins: dict[str, dict[str, Any]] = {}
        for plugin in self._plugins.values():
            info: dict[str, Any] = {"enabled": plugin.enabled_for(entry.name)}
            config = plugin.configuration(entry.name)
            if config:
                info["config"] = config
            extra = plugin.describe(entry)
            if extra:
                info["metadata"] = extra
            plugins[plugin.name] = info
        return {"plugins": plugins} if plugins else {}
