"""Logging plugin for pout.

Reports each handler that runs during a dispatch: the route that matched,
the parameters collected so far, and how the handler finished. A handler
that called ``next_()`` before returning "passed" the path on; one that
returned without calling it "claimed" the path. A handler that keeps
``next_`` to call later is reported as claiming it, since that is what
it did when it returned.

Options (router-wide or per handler):
    - ``enabled``: wrap handlers at all (default True)
    - ``before``: log when the handler starts (default True)
    - ``after``: log the outcome and elapsed time (default True)
    - ``level``: logging level of the records (default ``logging.INFO``)
    - ``print``: write to stdout instead of the logger (default False)

Example::

    router = Router("app").plug("logging", before=False)
    router.register("/user/:id", load_user, show_user)
    router.dispatch("/user/42")
    # pout: load_user passed /user/42 (0.01 ms)
    # pout: show_user claimed /user/42 (0.02 ms)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pout.core.router import Router
from pout.plugins._base_plugin import BasePlugin, HandlerEntry


class LoggingPlugin(BasePlugin):
    """Logs which handlers ran, on what route, and whether they passed control on."""

    plugin_code = "logging"
    plugin_description = "Logs handler runs and their outcome"

    __slots__ = ("_logger",)

    def __init__(self, router, *, logger: logging.Logger | None = None, **config):
        self._logger = logger or logging.getLogger("pout")
        super().__init__(router, **config)

    def configure(  # type: ignore[override]
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        level: int = logging.INFO,
        print: bool = False,  # noqa: A002
    ):
        pass

    def _write(self, config: dict[str, Any], message: str) -> None:
        if config.get("print", False):
            print(message)
        else:
            self._logger.log(config.get("level", logging.INFO), message)

    def wrap_handler(self, entry: HandlerEntry, call_next: Callable):
        pattern = entry.route.pattern

        def logged(ctx: Any, next_: Callable[[], None]):
            config = self.configuration(entry.name)
            passed = False

            def forward() -> None:
                nonlocal passed
                passed = True
                next_()

            if config.get("before", True):
                self._write(
                    config, f"{entry.name} matched {ctx.path} on {pattern!r} with {ctx.params!r}"
                )
            started = time.perf_counter()
            result = call_next(ctx, forward)
            if config.get("after", True):
                elapsed = (time.perf_counter() - started) * 1000
                outcome = "passed" if passed else "claimed"
                self._write(config, f"{entry.name} {outcome} {ctx.path} ({elapsed:.2f} ms)")
            return result

        return logged

    def describe(self, entry: HandlerEntry) -> dict[str, Any]:
        return {"logger": self._logger.name}


Router.register_plugin(LoggingPlugin)
