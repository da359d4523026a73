# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""NavigationContext - per-dispatch state handed to every handler.

A context is created once per ``dispatch()`` call from the raw path, the
router's base prefix and the page title. Handlers read its fields and may
attach their own data as attributes; only successful route matches write
into ``params``.

Example::

    ctx = NavigationContext("/app/user/5?tab=info", base="/app", title="Home")
    ctx.canonical_path  # "/app/user/5?tab=info"
    ctx.path            # "/user/5?tab=info"
    ctx.pathname        # "/app/user/5"
    ctx.querystring     # "tab=info"
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pout.core.pattern import Key

__all__ = ["NavigationContext", "Params"]


class Params(dict):
    """Named route parameters plus positional captures.

    Named values live in the mapping itself; unnamed captures (wildcards,
    inline regex groups, catch-all remainders) are kept in ``positional``
    in capture order.

    Writes are first-writer-wins for both kinds: a name or a positional slot
    holding a non-``None`` value is never overwritten by a later route in
    the same dispatch.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.positional: list[str | None] = []

    def merge(self, keys: Iterable[Key | None], values: Iterable[str | None]) -> None:
        """Store one route's decoded captures according to its key schema."""
        slot = 0
        for key, value in zip(keys, values):
            if key is not None:
                if self.get(key.name) is None:
                    self[key.name] = value
                continue
            if slot < len(self.positional):
                if self.positional[slot] is None:
                    self.positional[slot] = value
            else:
                self.positional.append(value)
            slot += 1

    def __repr__(self) -> str:
        return f"Params({dict.__repr__(self)}, positional={self.positional!r})"


def _under_base(path: str, base: str) -> bool:
    """True when ``path`` is ``base`` itself or continues it at a ``/`` or ``?``."""
    if not path.startswith(base):
        return False
    return len(path) == len(base) or path[len(base)] in "/?" or base.endswith("/")


class NavigationContext:
    """The path being routed and the parameters collected so far.

    Attributes:
        canonical_path: The routed path, base prefix included.
        path: ``canonical_path`` without the base prefix (``/`` if empty).
            The prefix is only stripped at a segment boundary, so with base
            ``/app`` the path ``/application`` is not treated as prefixed.
            This is what routes match against.
        pathname: ``canonical_path`` up to the first ``?``.
        querystring: Text after the first ``?``, or ``""``.
        title: Page title supplied at dispatch time, passed through as-is.
        params: :class:`Params` filled in by matching routes.
    """

    def __init__(self, path: str, *, base: str = "", title: str | None = None) -> None:
        under_base = _under_base(path, base)
        if path.startswith("/") and not under_base:
            path = base + path
            under_base = True
        self.canonical_path = path
        pathname, _, querystring = path.partition("?")
        self.pathname = pathname
        self.querystring = querystring
        if base and under_base:
            path = path[len(base) :]
            if not path.startswith("/"):
                path = "/" + path
        self.path = path or "/"
        self.title = title
        self.params = Params()

    def __repr__(self) -> str:
        return f"<NavigationContext path={self.path!r} params={self.params!r}>"
