"""Tokenizer for PromQL expressions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    NUMBER = "number"
    DURATION = "duration"
    STRING = "string"
    OPERATOR = "operator"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    COMMA = ","
    COLON = ":"
    AT = "@"
    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    pos: int

    def describe(self) -> str:
        if self.kind is TokenKind.EOF:
            return "end of input"
        return f"{self.kind.value} {self.value!r}"


class LexError(ValueError):
    """Raised when an expression contains characters PromQL cannot tokenize."""

    def __init__(self, message: str, pos: int):
        super().__init__(message)
        self.message = message
        self.pos = pos


_IDENTIFIER_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")
_DURATION_RE = re.compile(r"(?:\d+(?:ms|[smhdwy]))+(?![a-zA-Z0-9_.])")
_FLOAT_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Longest operators first so "==" is never read as two "=".
_OPERATORS = ("==", "!=", "=~", "!~", "<=", ">=", "<", ">", "+", "-", "*", "/", "%", "^", "=")

_PUNCTUATION = {
    "(": TokenKind.LEFT_PAREN,
    ")": TokenKind.RIGHT_PAREN,
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
    "[": TokenKind.LEFT_BRACKET,
    "]": TokenKind.RIGHT_BRACKET,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    "@": TokenKind.AT,
}

_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def _read_string(text: str, start: int) -> tuple[str, int]:
    """Read a quoted string starting at ``start``; return (value, end)."""
    quote = text[start]
    pos = start + 1

    if quote == "`":
        end = text.find("`", pos)
        if end == -1:
            raise LexError("unterminated raw string", start)
        return text[pos:end], end + 1

    chars: List[str] = []
    while pos < len(text):
        ch = text[pos]
        if ch == quote:
            return "".join(chars), pos + 1
        if ch == "\n":
            break
        if ch == "\\":
            pos += 1
            if pos >= len(text):
                break
            esc = text[pos]
            if esc in _ESCAPES:
                chars.append(_ESCAPES[esc])
            elif esc in "xuU":
                width = {"x": 2, "u": 4, "U": 8}[esc]
                digits = text[pos + 1 : pos + 1 + width]
                if len(digits) != width or not all(c in "0123456789abcdefABCDEF" for c in digits):
                    raise LexError(f"invalid escape sequence '\\{esc}{digits}'", pos - 1)
                chars.append(chr(int(digits, 16)))
                pos += width
            elif esc in "01234567":
                digits = text[pos : pos + 3]
                if len(digits) != 3 or not all(c in "01234567" for c in digits):
                    raise LexError(f"invalid octal escape '\\{digits}'", pos - 1)
                chars.append(chr(int(digits, 8)))
                pos += 2
            else:
                raise LexError(f"unknown escape sequence '\\{esc}'", pos - 1)
            pos += 1
            continue
        chars.append(ch)
        pos += 1

    raise LexError("unterminated quoted string", start)


def tokenize(text: str) -> List[Token]:
    """Split a PromQL expression into tokens, ending with an EOF token.

    Raises:
        LexError: on characters or literals that are not valid PromQL
    """
    tokens: List[Token] = []
    pos = 0
    length = len(text)
    bracket_depth = 0

    while pos < length:
        ch = text[pos]

        if ch.isspace():
            pos += 1
            continue

        if ch == "#":
            newline = text.find("\n", pos)
            pos = length if newline == -1 else newline + 1
            continue

        if ch in "\"'`":
            value, end = _read_string(text, pos)
            tokens.append(Token(TokenKind.STRING, value, pos))
            pos = end
            continue

        if ch.isdigit() or (ch == "." and pos + 1 < length and text[pos + 1].isdigit()):
            match = _HEX_RE.match(text, pos)
            if match:
                tokens.append(Token(TokenKind.NUMBER, match.group(), pos))
                pos = match.end()
                continue
            match = _DURATION_RE.match(text, pos)
            if match:
                tokens.append(Token(TokenKind.DURATION, match.group(), pos))
                pos = match.end()
                continue
            match = _FLOAT_RE.match(text, pos)
            if match:
                tokens.append(Token(TokenKind.NUMBER, match.group(), pos))
                pos = match.end()
                continue

        # Inside brackets a colon separates subquery range and step.
        match = None if (ch == ":" and bracket_depth) else _IDENTIFIER_RE.match(text, pos)
        if match:
            tokens.append(Token(TokenKind.IDENTIFIER, match.group(), pos))
            pos = match.end()
            continue

        for op in _OPERATORS:
            if text.startswith(op, pos):
                tokens.append(Token(TokenKind.OPERATOR, op, pos))
                pos += len(op)
                break
        else:
            if ch in _PUNCTUATION:
                if ch == "[":
                    bracket_depth += 1
                elif ch == "]" and bracket_depth:
                    bracket_depth -= 1
                tokens.append(Token(_PUNCTUATION[ch], ch, pos))
                pos += 1
            else:
                raise LexError(f"unexpected character {ch!r}", pos)

    tokens.append(Token(TokenKind.EOF, "", length))
    return tokens
