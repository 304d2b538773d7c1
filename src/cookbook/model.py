# model.py
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class LineRecord:
    """
    One logical line of a recipe, with enough context for error messages.

    `value` is only set for triple-quoted blocks: it holds the assembled
    assignment value so the parser never has to re-split the raw text.
    """
    source: str
    path: str
    lineno: int
    text: str
    value: Optional[str] = None


class Directive(enum.Enum):
    """The closed set of step directives."""
    CD = "cd"
    EXPORT = "export"
    EXEC = "exec"
    EXEC_NO_EXIT = "exec-no-exit"
    INFO = "info"
    MUST_EXIST_DIR = "must-exist-dir"
    MUST_EXIST_FILE = "must-exist-file"
    MUST_NOT_EXIST_DIR = "must-not-exist-dir"
    MUST_NOT_EXIST_FILE = "must-not-exist-file"
    SCRIPT = "script"

    @classmethod
    def from_keyword(cls, word: str) -> Optional[Directive]:
        try:
            return cls(word)
        except ValueError:
            return None


@dataclass(frozen=True)
class Step:
    """A single directive invocation inside a recipe."""
    directive: Directive
    data: str
    source: Optional[LineRecord] = None

    @property
    def keyword(self) -> str:
        return self.directive.value


@dataclass
class Recipe:
    """
    A parsed recipe: description, variables and the ordered steps.

    `variables` maps name -> default value; an empty value means the
    variable is required on the command line.
    """
    name: str
    path: str
    brief: str = ""
    full: str = ""
    variables: Dict[str, str] = field(default_factory=dict)
    steps: List[Step] = field(default_factory=list)

    @property
    def required(self) -> list[str]:
        return sorted(k for k, v in self.variables.items() if v == "")
