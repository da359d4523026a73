"""Route - one compiled pattern and the adapters guarding its handlers.

``Route.match(path, params)`` tests a path (query string ignored) and, on
success, percent-decodes every capture and merges it into ``params``.

``Route.middleware(handler)`` returns the adapter stored in a router's
registry: it runs ``handler(ctx, next)`` when the route matches
``ctx.path`` and calls ``next()`` straight away otherwise.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote

from pout.core.context import NavigationContext, Params
from pout.core.pattern import CompiledPattern, Key, compile_pattern

__all__ = ["Route", "decode_component"]

logger = logging.getLogger(__name__)

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_component(value: str) -> str:
    """Percent-decode a captured path component.

    Raises:
        ValueError: On a ``%`` not followed by two hex digits or on escapes
            that do not form valid UTF-8.
    """
    if _MALFORMED_ESCAPE.search(value):
        raise ValueError(f"Malformed percent-escape in {value!r}")
    return unquote(value, errors="strict")


class Route:
    """A compiled path pattern.

    Args:
        pattern: Pattern string, or a compiled ``re.Pattern`` used as-is.
        sensitive: Case-sensitive matching (default False).
        strict: Reject a trailing slash the pattern does not spell out.
    """

    __slots__ = ("pattern", "sensitive", "strict", "compiled")

    def __init__(
        self, pattern: str | re.Pattern[str], *, sensitive: bool = False, strict: bool = False
    ) -> None:
        self.pattern = pattern
        self.sensitive = sensitive
        self.strict = strict
        self.compiled: CompiledPattern = compile_pattern(
            pattern, sensitive=sensitive, strict=strict
        )

    @property
    def matcher(self) -> re.Pattern[str]:
        return self.compiled.matcher

    @property
    def keys(self) -> tuple[Key | None, ...]:
        return self.compiled.keys

    def match(self, path: str, params: Params) -> bool:
        """Return True if ``path`` matches, merging its captures into ``params``.

        ``params`` is left untouched when the path does not match or when a
        capture cannot be decoded.
        """
        pathname = path.split("?", 1)[0]
        found = self.compiled.matcher.search(pathname)
        if found is None:
            return False
        try:
            values = [
                decode_component(value) if isinstance(value, str) else value
                for value in found.groups()
            ]
        except ValueError as exc:
            logger.debug("Route %r skipped for %r: %s", self.compiled.source, path, exc)
            return False
        params.merge(self.compiled.keys, values)
        return True

    def middleware(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        """Return the registry adapter guarding ``handler`` behind this route."""

        def adapter(ctx: NavigationContext, next_: Callable[[], None]) -> Any:
            if self.match(ctx.path, ctx.params):
                return handler(ctx, next_)
            next_()
            return None

        return adapter

    def __repr__(self) -> str:
        return f"<Route {self.compiled.source!r}>"
