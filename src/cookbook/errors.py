# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .model import LineRecord


class CookbookError(Exception):
    """Base class for every error cookbook reports to the user."""


# ----------------------------------------------------------------------
# Parse-time errors
# ----------------------------------------------------------------------

@dataclass
class RecipeError(CookbookError):
    """
    A recipe could not be loaded.

    `record` points at the offending line when there is one, so the
    message can carry file and line number.
    """
    message: str
    record: Optional[LineRecord] = None

    def __str__(self) -> str:
        if self.record is None:
            return self.message
        return f"{self.message} at line {self.record.lineno} in {self.record.path}"


class RecipeSyntaxError(RecipeError):
    pass


class UnknownDirective(RecipeError):
    pass


class MalformedExport(RecipeError):
    pass


class IncompleteRecipe(RecipeError):
    pass


class UnterminatedString(RecipeError):
    pass


@dataclass
class RecipeFileNotFound(RecipeError):
    path: str = ""

    def __str__(self) -> str:
        msg = f"{self.message}: {self.path}"
        if self.record is not None:
            msg += f" (included at line {self.record.lineno} in {self.record.path})"
        return msg


class UnreadableRecipe(RecipeFileNotFound):
    """The recipe file exists but could not be opened or read."""


@dataclass
class CyclicInclude(RecipeError):
    chain: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [super().__str__(), "include chain:"]
        for i, p in enumerate(self.chain):
            lines.append(f"  {i:3d} {p}")
        return "\n".join(lines)


@dataclass
class UnterminatedQuote(CookbookError):
    text: str
    quote: str
    offset: int

    def __str__(self) -> str:
        return f"unterminated {self.quote} quote starting at offset {self.offset}: {self.text}"


# ----------------------------------------------------------------------
# Variable errors
# ----------------------------------------------------------------------

@dataclass
class UnknownVariableFlag(CookbookError):
    flag: str
    valid: List[str]

    def __str__(self) -> str:
        if not self.valid:
            return f"invalid option specified '{self.flag}', there are no valid options"
        return f"invalid option specified '{self.flag}', valid options are {sorted(self.valid)}"


@dataclass
class MissingFlagValue(CookbookError):
    flag: str

    def __str__(self) -> str:
        return f"missing argument for '{self.flag}'"


@dataclass
class MissingRequiredVariables(CookbookError):
    names: List[str]

    def __str__(self) -> str:
        opts = ", ".join(f"--{n}" for n in sorted(self.names))
        return f"unset variables found, cannot continue: {opts}"


# ----------------------------------------------------------------------
# Run-time errors
# ----------------------------------------------------------------------

@dataclass
class StepFailure(CookbookError):
    index: int
    directive: str
    message: str

    def __str__(self) -> str:
        return f"step {self.index} ({self.directive}) failed: {self.message}"


@dataclass
class ChildProcessFailure(StepFailure):
    cmd: str = ""
    exit_code: int = 1

    def __str__(self) -> str:
        return (
            f"step {self.index} ({self.directive}) failed (exit={self.exit_code}): "
            f"{self.message}: {self.cmd}"
        )


class FilesystemPredicateFailure(StepFailure):
    pass
