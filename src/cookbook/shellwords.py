# shellwords.py
# Minimal shell-style lexer. It only knows about whitespace, single and
# double quotes and backslash escapes: no globbing, no variables, no
# operators. Commands are spawned directly, never through a shell.

from __future__ import annotations

from typing import Iterable, List

from .errors import UnterminatedQuote

QUOTES = ("'", '"')
ESCAPE = "\\"


def split(text: str) -> List[str]:
    """
    Split a command string into an argument vector.

    Rules:
      - unquoted whitespace separates tokens
      - '...' and "..." group text, keeping whitespace; quotes do not nest
      - a backslash takes the next character literally, even inside quotes

    Raises:
        UnterminatedQuote: if a quote is still open at end of input
    """
    tokens: List[str] = []
    token: List[str] = []
    in_token = False     # distinguishes "" (empty arg) from no arg at all
    quote = ""           # currently open quote character
    quote_at = -1
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == ESCAPE:
            if i + 1 < n:
                token.append(text[i + 1])
                i += 2
            else:
                token.append(ch)
                i += 1
            in_token = True
            continue

        if quote:
            if ch == quote:
                quote = ""
            else:
                token.append(ch)
        elif ch in QUOTES:
            quote = ch
            quote_at = i
            in_token = True
        elif ch.isspace():
            if in_token:
                tokens.append("".join(token))
                token = []
                in_token = False
        else:
            token.append(ch)
            in_token = True
        i += 1

    if quote:
        raise UnterminatedQuote(text=text, quote=quote, offset=quote_at)
    if in_token:
        tokens.append("".join(token))
    return tokens


def quote(arg: str) -> str:
    """Render one argument so that split() gives it back unchanged."""
    out = []
    needs_quotes = arg == ""
    for ch in arg:
        if ch.isspace():
            needs_quotes = True
        elif ch in QUOTES or ch == ESCAPE:
            out.append(ESCAPE)
        out.append(ch)
    s = "".join(out)
    if needs_quotes:
        return f'"{s}"'
    return s


def join(args: Iterable[str]) -> str:
    """Build a display string for an argument vector."""
    return " ".join(quote(a) for a in args)
