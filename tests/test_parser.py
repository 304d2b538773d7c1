import os
from pathlib import Path

import pytest

from cookbook.errors import (
    IncompleteRecipe,
    MalformedExport,
    RecipeFileNotFound,
    RecipeSyntaxError,
    UnknownDirective,
)
from cookbook.model import Directive
from cookbook.parser import load_all_recipes, load_recipe, resolve_recipe_path

BUILD = '''
[description]
brief = "Build the project"
full = """
Build the project.
Second line.
"""

[variable]
target = release
dest =

[step]
step = info building ${target}
step = exec make ${target}
step = export CC=gcc
step = script """#!/bin/sh
echo hi
"""
step = info "quoted message"
'''


def test_parse_full_recipe(write):
    path = write("build.ini", BUILD)
    recipe = load_recipe(str(path), path.parent)

    assert recipe.name == "build"
    assert recipe.path == os.path.abspath(path)
    assert recipe.brief == "Build the project"
    assert recipe.full == "Build the project.\nSecond line."
    assert recipe.variables == {"target": "release", "dest": ""}
    assert recipe.required == ["dest"]

    assert [s.directive for s in recipe.steps] == [
        Directive.INFO,
        Directive.EXEC,
        Directive.EXPORT,
        Directive.SCRIPT,
        Directive.INFO,
    ]
    assert recipe.steps[0].data == "building ${target}"
    assert recipe.steps[2].data == "CC=gcc"
    assert recipe.steps[3].data == "#!/bin/sh\necho hi"
    assert recipe.steps[4].data == "quoted message"


def test_multiline_value_has_no_fences(write):
    path = write(
        "r.ini",
        '''
        [description]
        brief = b
        full = """
        A
        B
        """
        [step]
        step = info x
        ''',
    )
    assert load_recipe(str(path), path.parent).full == "A\nB"


def test_include_shares_steps(write):
    write("common.inc", "step = info from include\n")
    path = write(
        "r.ini",
        """
        [description]
        brief = b
        full = f
        [step]
        include common.inc
        step = info local
        """,
    )
    recipe = load_recipe(str(path), path.parent)
    assert [s.data for s in recipe.steps] == ["from include", "local"]


def _recipe(write, body):
    return write("r.ini", "[description]\nbrief = b\nfull = f\n" + body)


def test_orphan_line(write):
    path = write("r.ini", "brief = b\n[description]\n")
    with pytest.raises(RecipeSyntaxError) as exc:
        load_recipe(str(path), path.parent)
    assert exc.value.record.lineno == 1
    assert "orphan" in str(exc.value)


def test_invalid_section(write):
    path = _recipe(write, "[steps]\nstep = info x\n")
    with pytest.raises(RecipeSyntaxError) as exc:
        load_recipe(str(path), path.parent)
    assert exc.value.record.lineno == 4


def test_missing_equals(write):
    path = _recipe(write, "[step]\nexec ls\n")
    with pytest.raises(RecipeSyntaxError) as exc:
        load_recipe(str(path), path.parent)
    assert "missing '='" in str(exc.value)
    assert f"line 5 in {os.path.abspath(path)}" in str(exc.value)


def test_unknown_key_in_section(write):
    path = _recipe(write, "[step]\nrun = exec ls\n")
    with pytest.raises(RecipeSyntaxError):
        load_recipe(str(path), path.parent)


def test_unknown_description_key(write):
    path = write("r.ini", "[description]\nsummary = s\n")
    with pytest.raises(RecipeSyntaxError):
        load_recipe(str(path), path.parent)


def test_invalid_variable_name(write):
    path = _recipe(write, "[variable]\n9lives = 1\n[step]\nstep = info x\n")
    with pytest.raises(RecipeSyntaxError) as exc:
        load_recipe(str(path), path.parent)
    assert "9lives" in str(exc.value)


def test_unknown_directive(write):
    path = _recipe(write, "[step]\nstep = frobnicate now\n")
    with pytest.raises(UnknownDirective) as exc:
        load_recipe(str(path), path.parent)
    assert "frobnicate" in str(exc.value)


def test_export_needs_equals(write):
    path = _recipe(write, "[step]\nstep = export FOO\n")
    with pytest.raises(MalformedExport):
        load_recipe(str(path), path.parent)


def test_step_without_data(write):
    path = _recipe(write, "[step]\nstep = cd\n")
    with pytest.raises(RecipeSyntaxError):
        load_recipe(str(path), path.parent)


@pytest.mark.parametrize(
    "text",
    [
        "[description]\nfull = f\n[step]\nstep = info x\n",
        "[description]\nbrief = b\n[step]\nstep = info x\n",
        "[description]\nbrief = b\nfull = f\n[step]\n",
    ],
)
def test_incomplete_recipe(write, text):
    path = write("r.ini", text)
    with pytest.raises(IncompleteRecipe):
        load_recipe(str(path), path.parent)


def test_resolve_recipe_path_appends_extension(tmp_path):
    assert resolve_recipe_path("deploy", tmp_path) == tmp_path / "deploy.ini"
    assert resolve_recipe_path("deploy.ini", tmp_path) == tmp_path / "deploy.ini"
    assert resolve_recipe_path("/opt/r/deploy", tmp_path) == Path("/opt/r/deploy.ini")


def test_resolve_recipe_path_existing_file(write, tmp_path):
    path = write("elsewhere/thing.cfg", "x")
    assert resolve_recipe_path(str(path), tmp_path / "recipes") == path


def test_load_by_logical_name(write, tmp_path):
    write("recipes/hello.ini", "[description]\nbrief = b\nfull = f\n[step]\nstep = info hi\n")
    recipe = load_recipe("hello", tmp_path / "recipes")
    assert recipe.name == "hello"


def test_null_recipe_reference(tmp_path):
    with pytest.raises(RecipeFileNotFound):
        load_recipe("", tmp_path)


def test_load_all_recipes(write, tmp_path):
    body = "[description]\nbrief = {}\nfull = f\n[step]\nstep = info hi\n"
    write("recipes/zeta.ini", body.format("last"))
    write("recipes/alpha.ini", body.format("first"))
    write("recipes/shared.inc", "step = info not a recipe\n")

    recipes = load_all_recipes(tmp_path / "recipes")
    assert [(r.name, r.brief) for r in recipes] == [("alpha", "first"), ("zeta", "last")]


def test_load_all_recipes_missing_dir(tmp_path):
    with pytest.raises(RecipeFileNotFound):
        load_all_recipes(tmp_path / "nope")
