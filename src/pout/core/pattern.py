# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Path pattern compilation for pout.

A pattern such as ``/user/:id?`` or ``/page/(\\d{3})`` is turned into a
:class:`CompiledPattern`: an anchored regular expression plus the key
schema describing each of its capture groups.

Compilation runs in three steps:

``split_pattern(pattern)``
    Separates literal text from balanced inline-regex groups. A group is
    everything between an opening parenthesis and the closing parenthesis
    that brings the balance back to zero; characters following it start a
    new literal piece. A backslash escapes the next character.

``parse_pattern(pattern)``
    Tokenizes the pieces into typed segments:

    - ``Literal``: plain text (``/`` and ``.`` match literally)
    - ``NamedParam``: ``:name``, ``/:name``, ``/.:name``
    - ``OptionalParam``: ``:name?``; the leading slash is optional too
    - ``Wildcard``: ``+`` (one or more chars) and ``*`` (zero or more)
    - ``CatchAll``: trailing ``*`` of ``:name*``, the rest of the path
    - ``InlineRegex``: a ``(...)`` body emitted as a non-capturing group;
      only groups written inside the body capture

``lower_segments(segments)``
    Emits the regular expression. Named and optional parameters produce a
    :class:`Key`; every other capture group is a hole (``None``) and its
    value is collected positionally.

Example::

    >>> compiled = compile_pattern("/user/:id?")
    >>> compiled.keys
    (Key(name='id', optional=True),)
    >>> compiled.matcher.search("/user/42").group(1)
    '42'
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from pout.exceptions import PatternCompileError

__all__ = [
    "CatchAll",
    "CompiledPattern",
    "InlineRegex",
    "Key",
    "Literal",
    "NamedParam",
    "OptionalParam",
    "Segment",
    "Wildcard",
    "compile_pattern",
    "lower_segments",
    "parse_pattern",
    "split_pattern",
]

_TOKEN = re.compile(
    r"(?P<escaped>\\.)"
    r"|(?P<named>(?P<slash>/)?(?P<dot>\.)?:(?P<name>\w+)(?P<optional>\?)?(?P<star>\*)?)"
    r"|(?P<plus>\+)"
    r"|(?P<wild>\*)"
)
_LITERAL_SPECIAL = re.compile(r"\\.|[/.]")


@dataclass(frozen=True)
class Key:
    """Schema entry for a named capture group."""

    name: str
    optional: bool = False


@dataclass(frozen=True)
class CompiledPattern:
    """Matcher plus key schema.

    ``keys[i]`` describes capture group ``i + 1`` of ``matcher``. A ``None``
    entry marks a positional group.
    """

    source: str
    matcher: re.Pattern[str]
    keys: tuple[Key | None, ...]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(key.name for key in self.keys if key is not None)


# ----------------------------------------------------------------------
# Segment nodes
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class NamedParam:
    name: str
    slash: bool = False
    dotted: bool = False


@dataclass(frozen=True)
class OptionalParam(NamedParam):
    pass


@dataclass(frozen=True)
class Wildcard:
    one_or_more: bool = False


@dataclass(frozen=True)
class CatchAll:
    pass


@dataclass(frozen=True)
class InlineRegex:
    body: str


Segment = Literal | NamedParam | OptionalParam | Wildcard | CatchAll | InlineRegex


# ----------------------------------------------------------------------
# Splitting and parsing
# ----------------------------------------------------------------------
def split_pattern(pattern: str) -> list[str]:
    """Split ``pattern`` into literal pieces and complete ``(...)`` groups.

    Raises:
        PatternCompileError: If a group is never closed or a closing
            parenthesis has no matching opening one.
    """
    pieces: list[str] = []
    current: list[str] = []
    balance = 0
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            current.append(char + next(chars, ""))
            continue
        if char == "(":
            if balance == 0 and current:
                pieces.append("".join(current))
                current = []
            balance += 1
        elif char == ")":
            if balance == 0:
                raise PatternCompileError(pattern, "')' without a matching '('")
            balance -= 1
            if balance == 0:
                current.append(char)
                pieces.append("".join(current))
                current = []
                continue
        current.append(char)
    if balance:
        raise PatternCompileError(pattern, f"{balance} unclosed '(' at end of pattern")
    if current:
        pieces.append("".join(current))
    return pieces


def parse_pattern(pattern: str) -> list[Segment]:
    """Tokenize ``pattern`` into typed segments."""
    segments: list[Segment] = []
    for piece in split_pattern(pattern):
        if piece.startswith("("):
            segments.append(InlineRegex(piece[1:-1]))
        else:
            segments.extend(_tokenize(piece))
    return segments


def _tokenize(piece: str) -> list[Segment]:
    segments: list[Segment] = []
    literal = ""
    pos = 0
    for token in _TOKEN.finditer(piece):
        literal += piece[pos : token.start()]
        pos = token.end()
        if token.group("escaped"):
            literal += token.group()
            continue
        if literal:
            segments.append(Literal(literal))
            literal = ""
        if token.group("named"):
            param_class = OptionalParam if token.group("optional") else NamedParam
            segments.append(
                param_class(
                    token.group("name"),
                    slash=bool(token.group("slash")),
                    dotted=bool(token.group("dot")),
                )
            )
            if token.group("star"):
                segments.append(CatchAll())
        else:
            segments.append(Wildcard(one_or_more=bool(token.group("plus"))))
    literal += piece[pos:]
    if literal:
        segments.append(Literal(literal))
    return segments


# ----------------------------------------------------------------------
# Lowering
# ----------------------------------------------------------------------
def _escape_literal(text: str) -> str:
    return _LITERAL_SPECIAL.sub(
        lambda m: m.group() if len(m.group()) == 2 else "\\" + m.group(), text
    )


def _param_group(param: NamedParam) -> str:
    if param.dotted:
        return r"\.([^/.]+?)"
    return "([^/]+?)"


def _inline_group_count(source: str, body: str) -> int:
    try:
        return re.compile(body).groups
    except re.error as exc:
        raise PatternCompileError(source, f"invalid inline regex {body!r}: {exc}") from exc


def lower_segments(
    segments: list[Segment],
    *,
    source: str = "",
    sensitive: bool = False,
    strict: bool = False,
) -> CompiledPattern:
    """Build the anchored matcher and key schema for ``segments``.

    Args:
        segments: Output of :func:`parse_pattern`.
        source: Original pattern, used in error messages.
        sensitive: Match case-sensitively (default: insensitive).
        strict: Do not accept an optional trailing slash.
    """
    parts: list[str] = []
    keys: list[Key | None] = []
    for segment in segments:
        if isinstance(segment, Literal):
            parts.append(_escape_literal(segment.text))
        elif isinstance(segment, Wildcard):
            parts.append("(.+)" if segment.one_or_more else "(.*)")
            keys.append(None)
        elif isinstance(segment, OptionalParam):
            slash = r"\/" if segment.slash else ""
            parts.append(f"(?:{slash}{_param_group(segment)})?")
            keys.append(Key(segment.name, optional=True))
        elif isinstance(segment, NamedParam):
            slash = r"\/" if segment.slash else ""
            parts.append(f"{slash}(?:{_param_group(segment)})")
            keys.append(Key(segment.name))
        elif isinstance(segment, CatchAll):
            parts.append(r"(?:\/(.*))?")
            keys.append(None)
        elif isinstance(segment, InlineRegex):
            parts.append(f"(?:{segment.body})")
            keys.extend([None] * _inline_group_count(source, segment.body))
        else:  # pragma: no cover - exhaustive over Segment
            raise TypeError(f"Unknown segment {segment!r}")

    expression = "^" + "".join(parts) + ("" if strict else r"\/?") + r"\Z"
    try:
        matcher = re.compile(expression, 0 if sensitive else re.IGNORECASE)
    except re.error as exc:
        raise PatternCompileError(source, str(exc)) from exc
    if matcher.groups != len(keys):
        raise PatternCompileError(
            source, f"{matcher.groups} capture groups but {len(keys)} keys"
        )
    return CompiledPattern(source, matcher, tuple(keys))


def compile_pattern(
    pattern: str | re.Pattern[str], *, sensitive: bool = False, strict: bool = False
) -> CompiledPattern:
    """Compile a path pattern.

    An already compiled ``re.Pattern`` is used as-is: all of its groups are
    positional and the compile options are ignored.

    Raises:
        PatternCompileError: If the pattern is malformed.
        TypeError: If ``pattern`` is neither a string nor a compiled regex.
    """
    if isinstance(pattern, re.Pattern):
        return CompiledPattern(pattern.pattern, pattern, (None,) * pattern.groups)
    if not isinstance(pattern, str):
        raise TypeError(f"Pattern must be a string or compiled regex, got {type(pattern).__name__}")
    return lower_segments(
        parse_pattern(pattern), source=pattern, sensitive=sensitive, strict=strict
    )
