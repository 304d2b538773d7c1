# assembler.py
from __future__ import annotations

import enum
import re
from typing import List, Optional

from .errors import UnterminatedString
from .model import LineRecord

FENCE = '"""'

# key = """...    or    key = script|info """...
_OPEN_RE = re.compile(r'^(?P<key>[^\s=]+)\s*=\s*(?:(?P<word>script|info)\s+)?"""(?P<rest>.*)$')


class State(enum.Enum):
    NORMAL = "normal"
    IN_BLOCK = "in-block"


class BlockAssembler:
    """
    Joins triple-quoted values that span several raw lines.

    Lines are fed one at a time. In NORMAL state a line that opens a
    block either collapses on the same line (when it also ends with the
    fence) or switches to IN_BLOCK, where raw lines are collected verbatim
    until a line whose trimmed text ends with the fence.

    Example:
        full = \"\"\"
        first line
        # not a comment in here
        \"\"\"
    """

    def __init__(self, source: str, path: str):
        self.source = source
        self.path = path
        self.state = State.NORMAL
        self._start: Optional[LineRecord] = None
        self._word: Optional[str] = None
        self._raw: List[str] = []
        self._body: List[str] = []

    @property
    def in_block(self) -> bool:
        return self.state is State.IN_BLOCK

    def feed(self, lineno: int, raw: str) -> Optional[LineRecord]:
        """Consume one raw line; return a record when a logical line is complete."""
        if self.state is State.IN_BLOCK:
            return self._feed_block(raw)

        text = raw.strip()
        m = _OPEN_RE.match(text)
        if m is None:
            return LineRecord(self.source, self.path, lineno, text)

        rest = m.group("rest")
        if _closes(rest):
            body = _strip_fence(rest).strip()
            return LineRecord(self.source, self.path, lineno, text, _value(m.group("word"), body))

        self.state = State.IN_BLOCK
        self._start = LineRecord(self.source, self.path, lineno, text)
        self._word = m.group("word")
        self._raw = [raw]
        self._body = [rest]
        return None

    def _feed_block(self, raw: str) -> Optional[LineRecord]:
        self._raw.append(raw)
        if not _closes(raw.strip()):
            self._body.append(raw)
            return None

        self._body.append(_strip_fence(raw.rstrip()))
        body = "\n".join(self._body).strip()
        start = self._start
        if start is None:
            raise RuntimeError("multi-line block has no opening line")
        record = LineRecord(
            start.source,
            start.path,
            start.lineno,
            "\n".join(self._raw),
            _value(self._word, body),
        )
        self._reset()
        return record

    def finish(self) -> None:
        """Call at end of file; an open block is an error."""
        if self.state is State.IN_BLOCK:
            start = self._start
            self._reset()
            raise UnterminatedString("end of multi-line string not found, string starts", start)

    def _reset(self) -> None:
        self.state = State.NORMAL
        self._start = None
        self._word = None
        self._raw = []
        self._body = []


def _closes(text: str) -> bool:
    return text.endswith(FENCE)


def _strip_fence(text: str) -> str:
    return text[: -len(FENCE)]


def _value(word: Optional[str], body: str) -> str:
    if word:
        return f"{word} {body}" if body else word
    return body
