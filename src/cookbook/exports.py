# exports.py
# In-band channel that lets a script step change recipe variables.
#
# A script prints a line such as
#     ###export version=1.2.3
# and every later step sees ${version} == "1.2.3". Everything about the
# textual marker lives in this module; the runner only calls
# parse_exports() on the collected output.

from __future__ import annotations

import re
from typing import Dict, Iterable

EXPORT_MARKER = "###export"

_EXPORT_RE = re.compile("^" + re.escape(EXPORT_MARKER) + r"\s+([a-zA-Z_][a-zA-Z_\-0-9]*)=(.*)$")


def parse_exports(lines: Iterable[str]) -> Dict[str, str]:
    """
    Collect name=value assignments from script output.

    Lines that do not start with the marker, or carry an invalid variable
    name, are ignored. When a name is exported more than once the last
    value wins.
    """
    exports: Dict[str, str] = {}
    for line in lines:
        m = _EXPORT_RE.match(line.strip())
        if m:
            exports[m.group(1)] = m.group(2)
    return exports
