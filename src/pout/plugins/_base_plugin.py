"""Handler entries and the plugin base class.

``HandlerEntry``
    One handler registered behind one route. The registry adapter built by
    :meth:`Route.middleware` calls the entry, and the entry calls
    ``handler`` (``func`` wrapped by the router's plugins) or ``func``
    itself. Rewrapping an entry after a late ``plug()`` therefore needs no
    change to the registry.

``BasePlugin``
    A layer every handler of one router runs through. A plugin keeps its own
    settings: a router-wide dict plus a dict per handler name configured on
    its own. Subclasses declare the options they accept as the keyword
    parameters of ``configure()``; every call is checked with pydantic
    before it is stored. ``configure(_target="a,b", ...)`` stores the options
    for handlers ``a`` and ``b`` only.

    Hooks, all optional:
        - ``on_register(entry)``: a handler joined the router (or the plugin
          was plugged after it did)
        - ``wrap_handler(entry, call_next)``: return a ``(ctx, next_)``
          callable around ``call_next``
        - ``describe(entry)``: extra data for ``router.routes()``

Example::

    from pout.plugins._base_plugin import BasePlugin

    class VisitsPlugin(BasePlugin):
        plugin_code = "visits"
        plugin_description = "Counts the paths each handler saw"

        def configure(self, enabled: bool = True, limit: int = 100):
            pass

        def wrap_handler(self, entry, call_next):
            def counted(ctx, next_):
                entry.metadata.setdefault("visits", []).append(ctx.path)
                return call_next(ctx, next_)
            return counted
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import Any

from pydantic import validate_call

__all__ = ["BasePlugin", "HandlerEntry"]


@dataclass
class HandlerEntry:
    """A handler registered on a router behind one route."""

    name: str
    func: Callable
    route: Any
    router: Any
    plugins: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    handler: Callable | None = None

    def __call__(self, ctx: Any, next_: Callable[[], None]) -> Any:
        return (self.handler or self.func)(ctx, next_)


def _targets(spec: str | None) -> list[str | None]:
    if spec is None:
        return [None]
    return [name.strip() for name in spec.split(",") if name.strip()]


def _stored(configure: Callable) -> Callable:
    checked = validate_call(configure)

    @wraps(configure)
    def configure_and_store(self: BasePlugin, *, _target: str | None = None, **options: Any):
        checked(self, **options)
        for target in _targets(_target):
            self._settings.setdefault(target, {}).update(options)

    return configure_and_store


class BasePlugin:
    """Base class for router plugins."""

    __slots__ = ("name", "router", "_settings", "_switches")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _stored(cls.__dict__["configure"])  # type: ignore[method-assign]

    def __init__(self, router: Any, **config: Any):
        self.name = self.plugin_code
        self.router = router
        # None holds the router-wide settings
        self._settings: dict[str | None, dict[str, Any]] = {None: {}}
        self._switches: dict[str, bool] = {}
        self.configure(**config)

    def configuration(self, handler_name: str | None = None) -> dict[str, Any]:
        """Router-wide settings, overlaid with ``handler_name``'s own."""
        merged = dict(self._settings[None])
        if handler_name is not None:
            merged.update(self._settings.get(handler_name, {}))
        return merged

    def switch(self, handler_name: str, enabled: bool) -> None:
        """Turn the plugin on or off for one handler, whatever its settings say."""
        self._switches[handler_name] = bool(enabled)

    def enabled_for(self, handler_name: str) -> bool:
        if handler_name in self._switches:
            return self._switches[handler_name]
        return bool(self.configuration(handler_name).get("enabled", True))

    # Hooks

    def configure(self, enabled: bool = True) -> None:
        """Accepted options; subclasses redeclare this with their own."""

    def on_register(self, entry: HandlerEntry) -> None:
        return None

    def wrap_handler(self, entry: HandlerEntry, call_next: Callable) -> Callable:
        """Return a ``(ctx, next_)`` callable around ``call_next``.

        Not calling ``call_next`` skips the handler, and with it the
        handler's chance to pass control on.
        """
        return call_next

    def describe(self, entry: HandlerEntry) -> dict[str, Any]:
        return {}


BasePlugin.configure = _stored(BasePlugin.__dict__["configure"])  # type: ignore[method-assign]
