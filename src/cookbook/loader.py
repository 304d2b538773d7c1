# loader.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from . import shellwords
from .assembler import BlockAssembler
from .errors import (
    CyclicInclude,
    RecipeError,
    RecipeFileNotFound,
    RecipeSyntaxError,
    UnreadableRecipe,
    UnterminatedQuote,
)
from .model import LineRecord
from .ui.console import get_console

INCLUDE = "include"


def read_recipe_lines(
    fname: str | Path,
    stack: Optional[List[str]] = None,
    *,
    included_from: Optional[LineRecord] = None,
) -> List[LineRecord]:
    """
    Read a recipe file and return its logical lines, includes expanded.

    Args:
        fname: file to read, as referenced by the user or an include
        stack: absolute paths currently being expanded (cycle detection).
               Created fresh for each top-level call.
        included_from: the include line that referenced this file, if any

    Returns:
        Ordered LineRecords. Blank and comment lines are dropped and
        triple-quoted blocks are collapsed into a single record.

    Raises:
        RecipeFileNotFound, UnreadableRecipe, CyclicInclude, UnterminatedString,
        RecipeSyntaxError, RecipeError (file is not valid UTF-8)
    """
    if stack is None:
        stack = []

    path = Path(fname).expanduser()
    abspath = os.path.abspath(path)
    if not path.is_file():
        raise RecipeFileNotFound("recipe file does not exist", included_from, path=str(fname))
    if abspath in stack:
        raise CyclicInclude(
            "nested include found - infinite recursion",
            included_from,
            chain=[*stack, abspath],
        )

    stack.append(abspath)
    try:
        return _read(path, str(fname), abspath, stack, included_from)
    finally:
        stack.pop()


def _read(
    path: Path,
    source: str,
    abspath: str,
    stack: List[str],
    included_from: Optional[LineRecord],
) -> List[LineRecord]:
    console = get_console()
    console.print_debug(f"reading recipe file {abspath}")

    lines: List[LineRecord] = []
    assembler = BlockAssembler(source, abspath)
    base_dir = os.path.dirname(abspath)

    for lineno, raw in _raw_lines(path, source, abspath, included_from):
        # everything inside an open block is kept verbatim
        if assembler.in_block:
            record = assembler.feed(lineno, raw)
            if record is not None:
                lines.append(record)
            continue

        x = raw.strip()
        if not x or x.startswith("#"):
            continue

        if _is_include(x):
            here = LineRecord(source, abspath, lineno, x)
            target = _include_target(here, base_dir)
            lines.extend(read_recipe_lines(target, stack, included_from=here))
            continue

        record = assembler.feed(lineno, raw)
        if record is not None:
            lines.append(record)

    assembler.finish()
    return lines


def _raw_lines(
    path: Path,
    source: str,
    abspath: str,
    included_from: Optional[LineRecord],
) -> Iterator[Tuple[int, str]]:
    """Yield (lineno, text) with line endings removed, decoding each line as UTF-8."""
    try:
        with path.open("rb") as fp:
            for lineno, data in enumerate(fp, start=1):
                try:
                    text = data.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise RecipeError(
                        f"recipe file is not valid UTF-8 ({e.reason})",
                        LineRecord(source, abspath, lineno, ""),
                    ) from e
                yield lineno, text.rstrip("\r\n")
    except OSError as e:
        raise UnreadableRecipe(
            f"cannot read recipe file ({e.strerror or e})",
            included_from,
            path=source,
        ) from e


def _is_include(text: str) -> bool:
    if not text.startswith(INCLUDE):
        return False
    rest = text[len(INCLUDE):]
    return rest == "" or rest[0].isspace()


def _include_target(record: LineRecord, base_dir: str) -> str:
    arg = record.text[len(INCLUDE):].strip()
    try:
        tokens = shellwords.split(arg)
    except UnterminatedQuote as e:
        raise RecipeSyntaxError(f"syntax error in include statement ({e})", record) from e
    if len(tokens) != 1 or not tokens[0]:
        raise RecipeSyntaxError("syntax error in include statement, expected exactly one path", record)

    target = os.path.expanduser(tokens[0])
    if not os.path.isabs(target):
        # relative includes are relative to the including file
        target = os.path.join(base_dir, target)
    return target
