# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions for pout.

Only pattern compilation raises a dedicated exception. A path that does not
match, a capture that fails to percent-decode, and a chain that runs out of
handlers are normal routing outcomes and never raise.
"""

__all__ = [
    "PatternCompileError",
]


class PatternCompileError(ValueError):
    """Raised when a path pattern cannot be compiled into a matcher.

    Typical causes are inline regex groups whose parentheses never balance
    and inline regex bodies the ``re`` module rejects.

    Attributes:
        pattern: The pattern string that failed to compile.
        reason: Human-readable description of the problem.
    """

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Cannot compile pattern '{pattern}': {reason}")
