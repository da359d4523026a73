"""Plugin-free router runtime for pout.

This module exposes :class:`BaseRouter`, which owns an ordered registry of
route adapters and walks it for every dispatched path. Subclasses add
middleware but must preserve these semantics.

Constructor
-----------
Constructor signature::

    BaseRouter(name=None, *, base="", sensitive=False, strict=False,
               location=None)

- ``base``: prefix added to absolute paths that lack it and stripped before
  matching (see :meth:`BaseRouter.base`).
- ``sensitive`` / ``strict``: default compile options for patterns
  registered without explicit values.
- ``location``: optional callable returning ``(path, title)`` for the
  current location. Used by ``dispatch()`` when called without a path.

Registration
------------
``register(pattern, *handlers, **options)`` compiles one :class:`Route` and
appends one adapter per handler to the registry, in call order. Each
handler gets a :class:`HandlerEntry`; the adapter calls the entry, so the
wrapped handler (``_wrap_handler``) is looked up at call time.

Dispatch
--------
``dispatch(path)`` builds a :class:`NavigationContext` and starts a walk.
Each walk owns a private cursor. A handler receives ``(ctx, next_)``:

- calling ``next_()`` once hands control to the following registry entry;
- not calling it ends the walk for that context;
- calling it more than once is a caller error: every extra call runs one
  more downstream entry.

The walk is a loop, not a chain of nested calls. ``next_()`` invoked while
the loop runs only queues a step, which executes after the current handler
returns. ``next_()`` invoked later (a handler that kept it while waiting on
something) restarts the loop from the cursor. Running past the last entry
ends the walk silently.

Hooks for subclasses
--------------------
- ``_wrap_handler``: override to wrap callables (middleware stack).
- ``_after_entry_registered``: invoked after registering a handler.
- ``_split_plugin_options``: claim ``<plugin>_<option>`` registration kwargs.
- ``_describe_entry_extra``: allow subclasses to extend per-entry description.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

from pout.plugins._base_plugin import HandlerEntry

from .context import NavigationContext
from .route import Route

__all__ = ["BaseRouter"]

logger = logging.getLogger(__name__)

Adapter = Callable[[NavigationContext, Callable[[], None]], Any]


class _Dispatch:
    """Cursor over a registry snapshot for one dispatch call."""

    __slots__ = ("context", "index", "_registry", "_pending", "_running")

    def __init__(self, registry: Sequence[Adapter], context: NavigationContext) -> None:
        self.context = context
        self.index = 0
        self._registry = registry
        self._pending = 0
        self._running = False

    def advance(self) -> None:
        self._pending += 1
        if self._running:
            return
        self._running = True
        try:
            while self._pending:
                self._pending -= 1
                if self.index >= len(self._registry):
                    logger.debug("Chain exhausted for %r", self.context.path)
                    break
                adapter = self._registry[self.index]
                self.index += 1
                adapter(self.context, self.advance)
        finally:
            self._pending = 0
            self._running = False


class BaseRouter:
    """Plugin-free router owning an ordered handler registry.

    Responsibilities:
        - Compile patterns into routes and keep adapters in registration order
        - Build a navigation context per dispatch and walk the registry
        - Expose the base prefix and introspection data
        - Provide hooks for subclasses to wrap handlers
    """

    __slots__ = (
        "name",
        "sensitive",
        "strict",
        "location",
        "_base",
        "_registry",
        "_entries",
    )

    def __init__(
        self,
        name: str | None = None,
        *,
        base: str = "",
        sensitive: bool = False,
        strict: bool = False,
        location: Callable[[], tuple[str, str | None]] | None = None,
    ) -> None:
        self.name = name
        self.sensitive = sensitive
        self.strict = strict
        self.location = location
        self._base = base
        self._registry: list[Adapter] = []
        self._entries: list[HandlerEntry] = []

    # ------------------------------------------------------------------
    # Base path
    # ------------------------------------------------------------------
    def base(self, path: str | None = None) -> str:
        """Get the base prefix, or set it when ``path`` is given.

        Returns:
            The current base prefix (after the update, if any).
        """
        if path is not None:
            self._base = path
        return self._base

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(
        self,
        pattern: str | re.Pattern[str],
        *handlers: Callable[..., Any],
        sensitive: bool | None = None,
        strict: bool | None = None,
        name: str | None = None,
        **options: Any,
    ) -> Route:
        """Register ``handlers`` behind a route compiled from ``pattern``.

        Args:
            pattern: Path pattern (``/user/:id``, ``/files/*``, ...) or a
                compiled regex.
            *handlers: Callables ``(ctx, next_)``, appended in order. With no
                handlers the pattern is only compiled.
            sensitive: Case-sensitive matching; defaults to the router's.
            strict: Strict trailing slash; defaults to the router's.
            name: Logical handler name (defaults to each handler's ``__name__``).
            **options: ``<plugin>_<option>`` settings for the handlers of this
                call (e.g. ``logging_before=False``).

        Returns:
            The compiled :class:`Route`.

        Raises:
            PatternCompileError: If the pattern is malformed.
            TypeError: If a handler is not callable or an option is unknown.
        """
        plugin_options = self._split_plugin_options(options)
        for handler in handlers:
            if not callable(handler):
                raise TypeError(f"Handler must be callable, got {type(handler).__name__}")
        route = Route(
            pattern,
            sensitive=self.sensitive if sensitive is None else sensitive,
            strict=self.strict if strict is None else strict,
        )
        for handler in handlers:
            entry = self._register_callable(
                route, handler, name=name, plugin_options=plugin_options
            )
            self._registry.append(route.middleware(entry))
        return route

    def route(self, pattern: str | re.Pattern[str], **options: Any) -> Callable:
        """Decorator form of :meth:`register`.

        Example::

            @router.route("/user/:id")
            def show_user(ctx, next_):
                ...
        """

        def decorator(func: Callable) -> Callable:
            self.register(pattern, func, **options)
            return func

        return decorator

    def _register_callable(
        self,
        route: Route,
        handler: Callable,
        *,
        name: str | None = None,
        plugin_options: dict[str, dict[str, Any]] | None = None,
    ) -> HandlerEntry:
        entry = HandlerEntry(
            name=name or getattr(handler, "__name__", type(handler).__name__),
            func=handler,
            route=route,
            router=self,
        )
        if plugin_options:
            entry.metadata["plugin_config"] = plugin_options
        self._entries.append(entry)
        self._after_entry_registered(entry)
        entry.handler = self._wrap_handler(entry, entry.func)
        return entry

    def _split_plugin_options(self, options: dict[str, Any]) -> dict[str, dict[str, Any]]:
        if options:
            raise TypeError(f"Unexpected registration options: {', '.join(sorted(options))}")
        return {}

    def _wrap_handler(self, entry: HandlerEntry, call_next: Callable) -> Callable:
        return call_next

    def _rebuild_handlers(self) -> None:
        """Rebuild wrapped handlers for all entries."""
        for entry in self._entries:
            entry.handler = self._wrap_handler(entry, entry.func)

    def _after_entry_registered(
        self, entry: HandlerEntry
    ) -> None:  # pragma: no cover - hook for subclasses
        return None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, path: str | None = None, *, title: str | None = None) -> NavigationContext:
        """Route ``path`` through the registry.

        Args:
            path: Path plus optional query string. When omitted, the router's
                ``location`` provider supplies path and title.
            title: Page title exposed as ``ctx.title``.

        Returns:
            The context the walk ran with. If a handler kept its continuation
            for later, the walk may still be in progress.

        Raises:
            ValueError: If ``path`` is omitted and no location provider is set.
        """
        if path is None:
            if self.location is None:
                raise ValueError("dispatch() needs a path when no location provider is set")
            path, current_title = self.location()
            if title is None:
                title = current_title
        context = NavigationContext(path, base=self._base, title=title)
        _Dispatch(tuple(self._registry), context).advance()
        return context

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def routes(self) -> list[dict[str, Any]]:
        """Describe registered handlers in registry order.

        Each item has ``name``, ``pattern``, ``regex``, ``keys`` (named
        parameters) and ``positional`` (count of unnamed captures), plus
        whatever subclasses add through ``_describe_entry_extra``.
        """
        described = []
        for entry in self._entries:
            compiled = entry.route.compiled
            description: dict[str, Any] = {
                "name": entry.name,
                "pattern": compiled.source,
                "regex": compiled.matcher.pattern,
                "keys": list(compiled.names),
                "positional": sum(1 for key in compiled.keys if key is None),
            }
            description.update(self._describe_entry_extra(entry, description))
            described.append(description)
        return described

    def _describe_entry_extra(
        self, entry: HandlerEntry, base_description: dict[str, Any]
    ) -> dict[str, Any]:  # pragma: no cover - overridden when plugins present
        return {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} handlers={len(self._registry)}>"
