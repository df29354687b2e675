from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, FrozenSet, List, Mapping, Optional, Set

from .timeline import normalize_str


PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}\s]+)\s*\}\}")


@dataclass(frozen=True)
class RenderResult:
    output: str
    unresolved: FrozenSet[str]


def placeholders(template: Any) -> List[str]:
    seen: List[str] = []
    for match in PLACEHOLDER_RE.finditer(normalize_str(template)):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen


def render(template: Any, bindings: Optional[Mapping[str, Any]] = None) -> RenderResult:
    """Substitute ``{{ name }}`` placeholders in ``template``.

    Whitespace inside the braces is ignored, so ``{{name}}`` and
    ``{{ name }}`` resolve the same way. Placeholders with no binding are kept
    verbatim and their names are returned in ``unresolved``.
    """
    values = dict(bindings or {})
    unresolved: Set[str] = set()

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in values:
            return normalize_str(values[name])
        unresolved.add(name)
        return match.group(0)

    output = PLACEHOLDER_RE.sub(_substitute, normalize_str(template))
    return RenderResult(output=output, unresolved=frozenset(unresolved))
