"""pout - client-side path routing for Python.

Matches navigation paths against registered patterns and runs the bound
handlers in registration order, each one deciding whether to pass control
on to the next.

Public exports:
    - ``Router``: Router owning an ordered handler registry, with plugins
    - ``BaseRouter``: Plugin-free router
    - ``Route``: One compiled pattern
    - ``NavigationContext``: Per-dispatch context handed to handlers
    - ``compile_pattern``: Pattern string to matcher plus key schema
    - ``PatternCompileError``: Raised for malformed patterns
    - ``register``, ``route``, ``dispatch``, ``base``: shortcuts bound to
      ``default_router``, a process-wide ``Router`` instance

Built-in plugins (logging) are auto-registered on first import.

Example::

    import pout

    @pout.route("/user/:id")
    def load_user(ctx, next_):
        ctx.user = {"id": ctx.params["id"]}
        next_()

    @pout.route("/user/:id")
    def show_user(ctx, next_):
        print(ctx.user)

    pout.dispatch("/user/42")
"""

from importlib import import_module

__version__ = "0.3.0"

from .core import (
    BaseRouter,
    CompiledPattern,
    Key,
    NavigationContext,
    Params,
    Route,
    Router,
    compile_pattern,
)
from .exceptions import PatternCompileError

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

default_router = Router("default")

register = default_router.register
route = default_router.route
dispatch = default_router.dispatch
base = default_router.base

__all__ = [
    "BaseRouter",
    "CompiledPattern",
    "Key",
    "NavigationContext",
    "Params",
    "PatternCompileError",
    "Route",
    "Router",
    "base",
    "compile_pattern",
    "default_router",
    "dispatch",
    "register",
    "route",
]
