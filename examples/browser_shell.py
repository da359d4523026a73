"""Browser Shell - simulated page navigation driven by pout.

Shows a chain of handlers sharing one context: a loader that passes
control on, a page renderer that claims the path, and a catch-all
"not found" page at the end of the registry. The current location comes
from a small ``Location`` object instead of a real browser.

Run::

    python examples/browser_shell.py /app/user/42 /app/files/docs/readme.md /app/nope
"""

from __future__ import annotations

import logging
import sys

from pout import Router

USERS = {"42": "Ada", "7": "Grace"}


class Location:
    def __init__(self, path: str, title: str = "Shell"):
        self.path = path
        self.title = title

    def __call__(self):
        return self.path, self.title


location = Location("/app/")
router = Router("shell", base="/app", location=location).plug("logging", after=False)


@router.route("/user/:id")
def load_user(ctx, next_):
    ctx.user = USERS.get(ctx.params["id"])
    next_()


@router.route("/user/:id")
def show_user(ctx, next_):
    if ctx.user is None:
        next_()
        return
    print(f"[{ctx.title}] profile of {ctx.user}")


@router.route("/files/*")
def show_file(ctx, next_):
    print(f"[{ctx.title}] file {ctx.params.positional[0]!r}")


@router.route("*")
def not_found(ctx, next_):
    print(f"[{ctx.title}] nothing at {ctx.canonical_path}")


def main(paths: list[str]) -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    for path in paths or ["/app/user/42"]:
        location.path = path
        router.dispatch()


if __name__ == "__main__":
    main(sys.argv[1:])
