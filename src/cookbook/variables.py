# variables.py
from __future__ import annotations

from typing import Dict, Mapping, Sequence

from .errors import MissingFlagValue, MissingRequiredVariables, UnknownVariableFlag

FLAG_PREFIX = "--"


def reference(name: str) -> str:
    """The textual form of a variable reference: ${name}."""
    return "${" + name + "}"


def resolve_variables(declared: Mapping[str, str], overrides: Sequence[str]) -> Dict[str, str]:
    """
    Merge recipe defaults with command line overrides.

    Args:
        declared: variable name -> default ("" means required)
        overrides: flat list alternating --name value

    Returns:
        A new dict with every variable set and ${name} references
        between variables substituted once.

    Raises:
        UnknownVariableFlag: an override names an undeclared variable
        MissingFlagValue: the last flag has no value
        MissingRequiredVariables: one or more variables are still empty
    """
    values: Dict[str, str] = dict(declared)
    flags = {FLAG_PREFIX + k: k for k in values}

    i = 0
    while i < len(overrides):
        opt = overrides[i]
        if opt not in flags:
            raise UnknownVariableFlag(flag=opt, valid=sorted(flags))
        if i + 1 >= len(overrides):
            raise MissingFlagValue(flag=opt)
        values[flags[opt]] = overrides[i + 1]
        i += 2

    # report every missing variable at once
    missing = [k for k, v in values.items() if v == ""]
    if missing:
        raise MissingRequiredVariables(names=sorted(missing))

    substitute_between(values)
    return values


def substitute_between(values: Dict[str, str]) -> None:
    """
    One pass of ${name} substitution across the variable values, in place.

    Variables are visited in declaration order and each one's current value
    is pushed into all the others. This is a single pass, not a fixed
    point: a reference chain only resolves fully when every link is visited
    after the link it depends on.
    """
    for key in list(values):
        ref = reference(key)
        val = values[key]
        for other in values:
            if other != key and ref in values[other]:
                values[other] = values[other].replace(ref, val)


def substitute(text: str, variables: Mapping[str, str]) -> str:
    """Replace ${name} for every known variable; unknown references stay."""
    if "${" not in text:
        return text
    for key, val in variables.items():
        text = text.replace(reference(key), val)
    return text
