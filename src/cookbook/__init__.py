from .model import Directive, LineRecord, Recipe, Step
from .parser import load_all_recipes, load_recipe, parse_recipe
from .runner import ExecutionContext, RecipeRunner, run_recipe
from .variables import resolve_variables

__all__ = [
    "Directive",
    "LineRecord",
    "Recipe",
    "Step",
    "load_all_recipes",
    "load_recipe",
    "parse_recipe",
    "ExecutionContext",
    "RecipeRunner",
    "run_recipe",
    "resolve_variables",
]
