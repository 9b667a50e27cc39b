"""
Pretty-print contract results.

Results are re-indented token by token: numbers, strings and repeated keys
are shown exactly as the contract wrote them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterator, Optional

from .errors import PresentationError

INDENT = 2

_WHITESPACE = " \t\r\n"
_PUNCTUATION = "{}[],:"
_OPENERS = ("{", "[")
_CLOSERS = ("}", "]")


@dataclass(frozen=True)
class Presentation:
    text: str
    error: Optional[PresentationError] = None


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def _tokens(text: str) -> Iterator[str]:
    """Split already-validated JSON text into punctuation and scalar tokens."""
    i = 0
    end = len(text)
    while i < end:
        ch = text[i]
        if ch in _WHITESPACE:
            i += 1
        elif ch in _PUNCTUATION:
            yield ch
            i += 1
        elif ch == '"':
            j = i + 1
            while text[j] != '"':
                j += 2 if text[j] == "\\" else 1
            yield text[i : j + 1]
            i = j + 1
        else:
            j = i
            while j < end and text[j] not in _WHITESPACE and text[j] not in _PUNCTUATION:
                j += 1
            yield text[i:j]
            i = j


def _reindent(text: str, indent: int = INDENT) -> str:
    out: list[str] = []
    depth = 0
    prev = None
    for token in _tokens(text):
        if token in _CLOSERS:
            depth -= 1
            # Empty containers stay on one line.
            if prev not in _OPENERS:
                out.append("\n" + " " * (indent * depth))
        elif prev in _OPENERS or prev == ",":
            out.append("\n" + " " * (indent * depth))
        out.append(token)
        if token in _OPENERS:
            depth += 1
        elif token == ":":
            out.append(" ")
        prev = token
    return "".join(out)


def present(raw: bytes) -> Presentation:
    """
    Re-indent a JSON payload for display.

    Falls back to the raw text when the payload is not valid UTF-8 JSON; the
    decode failure is returned alongside, never raised.
    """
    try:
        text = raw.decode("utf-8")
        json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        return Presentation(
            text=raw.decode("utf-8", errors="replace"),
            error=PresentationError(f"Unable to pretty print result - parse error: {exc}"),
        )
    return Presentation(text=_reindent(text))
