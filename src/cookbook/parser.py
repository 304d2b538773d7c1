# parser.py
from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import RECIPE_SUFFIX
from .errors import (
    IncompleteRecipe,
    MalformedExport,
    RecipeFileNotFound,
    RecipeSyntaxError,
    UnknownDirective,
)
from .loader import read_recipe_lines
from .model import Directive, LineRecord, Recipe, Step
from .ui.console import get_console

DESCRIPTION = "[description]"
VARIABLE = "[variable]"
STEP = "[step]"

# section -> allowed keys (None means any valid variable name)
SECTIONS: Dict[str, Optional[set[str]]] = {
    DESCRIPTION: {"brief", "full"},
    VARIABLE: None,
    STEP: {"step"},
}

VARIABLE_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z_\-0-9]*$")
_STEP_RE = re.compile(r"^(\S+)(?:\s+(\S.*))?$", re.DOTALL)
_INFO_QUOTED_RE = re.compile(r'^info\s+(".*)$', re.DOTALL)


# ----------------------------------------------------------------------
# Recipe lookup / loading
# ----------------------------------------------------------------------

def resolve_recipe_path(ref: str, recipe_dir: str | Path) -> Path:
    """
    Map a recipe reference to a file.

    An existing file is used as is. Otherwise `.ini` is appended when
    missing and relative names are looked up in the recipe directory:
        build       -> <recipe_dir>/build.ini
        ./build     -> ./build.ini
        /x/build    -> /x/build.ini
    """
    if not ref:
        raise RecipeFileNotFound("null recipes not allowed", path=ref)

    p = Path(ref).expanduser()
    if p.is_file():
        return p

    console = get_console()
    name = str(p)
    if not name.endswith(RECIPE_SUFFIX):
        console.print_info(f"appending extension: '{RECIPE_SUFFIX}'")
        name += RECIPE_SUFFIX

    candidate = Path(name)
    if candidate.is_absolute() or ref.startswith(("./", "../")):
        return candidate

    console.print_info(f"prepending directory path: '{recipe_dir}'")
    return Path(recipe_dir) / candidate


def load_recipe(ref: str, recipe_dir: str | Path) -> Recipe:
    """Load and validate a single recipe by file path or logical name."""
    console = get_console()
    console.print_info(f"loading recipe '{ref}'")
    path = resolve_recipe_path(ref, recipe_dir)
    console.print_info(f"recipe file '{path}'")
    lines = read_recipe_lines(path)
    return parse_recipe(path, lines)


def load_all_recipes(recipe_dir: str | Path) -> List[Recipe]:
    """Load every `*.ini` recipe in a directory, sorted by name."""
    d = Path(recipe_dir)
    if not d.is_dir():
        raise RecipeFileNotFound("cannot read recipes directory", path=str(d))

    recipes: List[Recipe] = []
    for path in sorted(d.glob(f"*{RECIPE_SUFFIX}")):
        if not path.is_file():
            continue
        recipes.append(parse_recipe(path, read_recipe_lines(path)))
    return recipes


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------

def parse_recipe(path: str | Path, lines: List[LineRecord]) -> Recipe:
    """
    Build a Recipe from the logical lines produced by the loader.

    Raises:
        RecipeSyntaxError, UnknownDirective, MalformedExport, IncompleteRecipe
    """
    check_sections(lines)

    name, abspath = recipe_name(path)
    recipe = Recipe(name=name, path=abspath)

    section = ""
    for record in lines:
        if record.value is None and record.text.startswith("["):
            section = record.text
            continue

        key, value = assignment(record)
        if section == DESCRIPTION:
            if key == "brief":
                recipe.brief = value
            else:
                recipe.full = value
        elif section == VARIABLE:
            if not VARIABLE_NAME_RE.match(key):
                raise RecipeSyntaxError(f"invalid variable name '{key}'", record)
            recipe.variables[key] = value
        else:
            recipe.steps.append(parse_step(value, record))

    if not recipe.brief:
        raise IncompleteRecipe(f"{DESCRIPTION} brief not set for {recipe.name}")
    if not recipe.full:
        raise IncompleteRecipe(f"{DESCRIPTION} full not set for {recipe.name}")
    if not recipe.steps:
        raise IncompleteRecipe(f"no steps defined in the {STEP} section for {recipe.name}")
    return recipe


def check_sections(lines: List[LineRecord]) -> None:
    """Verify section headers, orphan lines, '=' and per-section keys."""
    section = ""
    for record in lines:
        line = record.text
        if record.value is None and line.startswith("["):
            if line not in SECTIONS:
                raise RecipeSyntaxError(f"invalid section found: {line}", record)
            section = line
            continue

        if not section:
            raise RecipeSyntaxError(f"orphan declaration '{line}'", record)
        if "=" not in line:
            raise RecipeSyntaxError(f"syntax error, missing '=' in '{line}'", record)

        allowed = SECTIONS[section]
        decl = line.split("=", 1)[0].strip()
        if allowed is not None and decl not in allowed:
            raise RecipeSyntaxError(
                f"syntax error, found invalid declaration '{decl}' in section '{section}'",
                record,
            )


def assignment(record: LineRecord) -> Tuple[str, str]:
    """Split a `key = value` line, unquoting the value where needed."""
    key, _, value = record.text.partition("=")
    key = key.strip()

    if record.value is not None:
        return key, record.value

    value = value.strip()
    if value.startswith('"'):
        return key, _unquote(value, record)

    m = _INFO_QUOTED_RE.match(value)
    if m:
        # step = info "some text"  ->  info some text
        return key, "info " + _unquote(m.group(1), record)
    return key, value


def parse_step(value: str, record: LineRecord) -> Step:
    m = _STEP_RE.match(value)
    if m is None:
        raise RecipeSyntaxError("step has no directive", record)

    word, data = m.group(1), m.group(2)
    directive = Directive.from_keyword(word)
    if directive is None:
        raise UnknownDirective(f"unknown step directive '{word}'", record)
    if data is None:
        raise RecipeSyntaxError(f"step directive '{word}' has no data", record)

    data = data.strip()
    if directive is Directive.EXPORT and "=" not in data:
        raise MalformedExport("export is of the form VAR=VAL, could not find '='", record)
    return Step(directive=directive, data=data, source=record)


def recipe_name(path: str | Path) -> Tuple[str, str]:
    """Return (name, absolute path); the name is the file stem."""
    p = Path(path)
    return p.stem, os.path.abspath(p)


def _unquote(text: str, record: LineRecord) -> str:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise RecipeSyntaxError(f"invalid quoted string {text} ({e.msg})", record) from e
    if not isinstance(value, str):
        raise RecipeSyntaxError(f"invalid quoted string {text}", record)
    return value
