"""Structural repair of truncated or malformed JSON spans.

Repair runs only after a direct parse of the sanitized span has failed.
Each strategy is a pure function ``(span, diagnostic) -> str | None``;
``None`` means the strategy does not apply.  Strategies are tried in a fixed
order and the first candidate that *parses* wins.

Strategies never change a value.  They only delete a trailing incomplete
fragment and append closing ``]`` / ``}`` characters, then drop commas left
dangling before a closer.

Usage::

    from backend.app.services.json_repair import diagnose, repair

    diagnostic = diagnose(span)
    if diagnostic is not None:
        outcome = repair(span, diagnostic)
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from backend.app.models.llm import (
    DiagnosticKind,
    ParseDiagnostic,
    RepairFailed,
    Repaired,
    RepairOutcome,
)

logger = logging.getLogger(__name__)

_CLOSERS = {"{": "}", "[": "]"}

# Last field of a fully-formed exercise record, immediately followed by its
# closing brace: ``"restTime": "60s"}`` or ``"description": "Short tip" }``.
COMPLETE_RECORD_PATTERN = re.compile(
    r'"(?:restTime|description)"\s*:\s*"(?:[^"\\]|\\.)*"\s*\}'
)

Strategy = Callable[[str, ParseDiagnostic], str | None]


class JSONParseError(ValueError):
    """Raised by :func:`load_json`; carries a :class:`ParseDiagnostic`."""

    def __init__(self, diagnostic: ParseDiagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScanState:
    """Structure of a JSON-ish text, ignoring characters inside strings."""

    open_containers: tuple[str, ...]
    """Unclosed ``{`` / ``[`` in opening order."""
    structural: tuple[int, ...]
    """Offsets of ``{ } [ ] , :`` outside string literals."""
    open_string_at: int | None
    """Offset of the opening quote if the text ends inside a string."""


def scan(text: str, end: int | None = None) -> ScanState:
    """Walk *text* (up to *end*) tracking strings, escapes and nesting."""
    stop = len(text) if end is None else min(end, len(text))
    stack: list[str] = []
    structural: list[int] = []
    in_string = False
    escaped = False
    string_start: int | None = None

    for i in range(stop):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            string_start = i
        elif ch in "{[":
            stack.append(ch)
            structural.append(i)
        elif ch in "}]":
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
            structural.append(i)
        elif ch in ",:":
            structural.append(i)

    return ScanState(
        open_containers=tuple(stack),
        structural=tuple(structural),
        open_string_at=string_start if in_string else None,
    )


# ---------------------------------------------------------------------------
# Parsing + diagnostics
# ---------------------------------------------------------------------------


def _classify(text: str, exc: json.JSONDecodeError) -> DiagnosticKind:
    if exc.msg.startswith("Unterminated string"):
        return DiagnosticKind.unterminated_string
    if exc.msg.startswith("Expecting") and "[" in scan(text, exc.pos).open_containers:
        return DiagnosticKind.incomplete_array_element
    return DiagnosticKind.other


def load_json(text: str) -> object:
    """``json.loads`` that raises :class:`JSONParseError` with a diagnostic."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise JSONParseError(
            ParseDiagnostic(message=str(exc), offset=exc.pos, kind=_classify(text, exc))
        ) from exc


def diagnose(text: str) -> ParseDiagnostic | None:
    """Return why *text* does not parse, or ``None`` if it does."""
    try:
        load_json(text)
    except JSONParseError as exc:
        return exc.diagnostic
    return None


# ---------------------------------------------------------------------------
# Shared closing step
# ---------------------------------------------------------------------------


def strip_dangling_commas(text: str) -> str:
    """Drop structural commas followed only by whitespace and a closer (or EOF)."""
    state = scan(text)
    drop: set[int] = set()
    for pos in state.structural:
        if text[pos] != ",":
            continue
        rest = text[pos + 1 :].lstrip()
        if not rest or rest[0] in "}]":
            drop.add(pos)
    if not drop:
        return text
    return "".join(ch for i, ch in enumerate(text) if i not in drop)


def close_containers(text: str) -> str:
    """Append the closers for every unclosed container, innermost first."""
    state = scan(text)
    suffix = "".join(_CLOSERS[opener] for opener in reversed(state.open_containers))
    return strip_dangling_commas(text.rstrip() + suffix)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def close_brackets(span: str, diagnostic: ParseDiagnostic) -> str | None:
    """Append the missing closers and nothing else."""
    return close_containers(span)


def truncate_to_last_record(span: str, diagnostic: ParseDiagnostic) -> str | None:
    """Cut after the last fully-formed exercise record."""
    matches = list(COMPLETE_RECORD_PATTERN.finditer(span))
    if not matches:
        return None
    return close_containers(span[: matches[-1].end()])


def truncate_at_error_offset(span: str, diagnostic: ParseDiagnostic) -> str | None:
    """Cut at the closed record nearest before the parse error.

    Heuristic salvage for a single level of array nesting with uniform
    records; deeper nesting may lose more than necessary.
    """
    if diagnostic.offset is None or diagnostic.kind != DiagnosticKind.incomplete_array_element:
        return None

    state = scan(span, diagnostic.offset)
    for pos in reversed(state.structural):
        if span[pos] != "}":
            continue
        following = span[pos + 1 :].lstrip()
        if following[:1] in (",", "]"):
            return close_containers(span[: pos + 1])
    return None


def drop_incomplete_property(span: str, diagnostic: ParseDiagnostic) -> str | None:
    """Delete a key/value pair cut off inside a string literal."""
    state = scan(span)
    if state.open_string_at is None:
        return None

    separators = [
        pos for pos in state.structural
        if pos < state.open_string_at and span[pos] in ",{["
    ]
    if not separators:
        return None

    cut = separators[-1]
    # Keep an opening container, drop a separating comma.
    head = span[: cut + 1] if span[cut] in "{[" else span[:cut]
    return close_containers(head.rstrip().rstrip(","))


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("close_brackets", close_brackets),
    ("truncate_to_last_record", truncate_to_last_record),
    ("truncate_at_error_offset", truncate_at_error_offset),
    ("drop_incomplete_property", drop_incomplete_property),
)


def repair(
    span: str,
    diagnostic: ParseDiagnostic,
    *,
    parse: Callable[[str], object] = load_json,
) -> RepairOutcome:
    """Try every strategy in order; return the first candidate *parse* accepts.

    *parse* must raise ``ValueError`` (or a subclass) on rejection.  On total
    failure the original *diagnostic* is returned unchanged.
    """
    for name, strategy in STRATEGIES:
        candidate = strategy(span, diagnostic)
        if candidate is None:
            continue
        try:
            parse(candidate)
        except ValueError as exc:
            logger.debug("repair strategy %s rejected: %s", name, exc)
            continue
        logger.info(
            "repair strategy %s succeeded: length=%d->%d", name, len(span), len(candidate),
        )
        return Repaired(text=candidate, strategy=name)

    return RepairFailed(diagnostic=diagnostic)
