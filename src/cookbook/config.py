# config.py
# Defaults for the cookbook CLI. Every value can be overridden on the
# command line or through the matching environment variable.

from __future__ import annotations

import os
from pathlib import Path

PROG = "cb"
VERSION = "0.4.0"

RECIPE_SUFFIX = ".ini"

# prefix for the built-in environment variables exported to recipes
ENV_PREFIX = "COOKBOOK"

RECIPES_ENVVAR = f"{ENV_PREFIX}_RECIPES"
SCRIPTS_ENVVAR = f"{ENV_PREFIX}_SCRIPTS"

DEFAULT_RECIPE_DIR = str(Path("~/.config/cookbook/recipes").expanduser())

# Anonymous scripts must be executable, and /tmp is often mounted noexec,
# so they live under the user's home directory.
DEFAULT_SCRIPT_DIR = str(Path(os.path.expanduser("~")) / ".cookbook")
