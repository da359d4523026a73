"""Core runtime aggregator for pout.

Exposes the runtime building blocks from a single module.

Public API:
    - ``compile_pattern``: Pattern string to matcher plus key schema
    - ``Route``: One compiled pattern with match and adapter support
    - ``NavigationContext``: Per-dispatch state handed to handlers
    - ``BaseRouter``: Plugin-free registry and dispatcher
    - ``Router``: Plugin-enabled router with middleware support

Importing this module performs only imports; it does not register plugins
or instantiate routers.
"""

from .base_router import BaseRouter
from .context import NavigationContext, Params
from .pattern import CompiledPattern, Key, compile_pattern
from .route import Route
from .router import Router

__all__ = [
    "BaseRouter",
    "CompiledPattern",
    "Key",
    "NavigationContext",
    "Params",
    "Route",
    "Router",
    "compile_pattern",
]
