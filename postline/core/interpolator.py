"""{{placeholder}} interpolation over a merged variable map.

Pure and stateless: no I/O, nothing kept between calls. Safe to share one
instance across threads or tasks, or to build a fresh one per call.

Resolution rules:
  * ``{{ name }}`` is looked up by its trimmed name; braces do not nest.
  * Unknown names are left verbatim, so ``{{missing}}`` survives into the output.
    A strict interpolator raises InvalidVariable instead.
  * Values are themselves interpolated against the same full map.
  * Each expansion branch carries its own frozen ``visited`` set; meeting a
    name already on the branch raises CircularReference.
  * Expansion stops with MaxDepthExceeded once it reaches MAX_DEPTH levels,
    cycle or not.
"""

import re
from typing import Iterable, Mapping

from postline.exceptions import CircularReference, InvalidVariable, MaxDepthExceeded

MAX_DEPTH = 10

_PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")


class Interpolator:
    """Resolves ``{{name}}`` placeholders. Holds no per-call state."""

    def __init__(self, max_depth: int = MAX_DEPTH, strict: bool = False) -> None:
        self.max_depth = max_depth
        self.strict = strict

    def interpolate(self, template: str, variables: Mapping[str, str]) -> str:
        """Return *template* with every resolvable placeholder substituted.

        Raises:
            CircularReference: a value expands back into a name on its own path.
            MaxDepthExceeded: expansion reached ``max_depth`` levels.
            InvalidVariable: unknown name, only when ``strict`` is set.
        """
        return self._expand(template, variables, 0, frozenset())

    def _expand(
        self,
        template: str,
        variables: Mapping[str, str],
        depth: int,
        visited: frozenset,
    ) -> str:
        if depth >= self.max_depth:
            raise MaxDepthExceeded(self.max_depth)

        def _replace(match: re.Match) -> str:
            name = match.group(1).strip()
            if name in visited:
                raise CircularReference(name)
            if name not in variables:
                if self.strict:
                    raise InvalidVariable(name)
                return match.group(0)
            return self._expand(variables[name], variables, depth + 1, visited | {name})

        # One forward pass over the original template; replacements never
        # shift the offsets of matches still to be processed.
        return _PLACEHOLDER_RE.sub(_replace, template)

    def extract_variable_names(self, template: str) -> list[str]:
        """All placeholder names in first-to-last order, duplicates included."""
        return [m.group(1).strip() for m in _PLACEHOLDER_RE.finditer(template)]

    def find_unresolved(self, template: str, available: Iterable[str]) -> list[str]:
        """Names referenced in *template* that are not in *available*."""
        known = set(available)
        return [name for name in self.extract_variable_names(template) if name not in known]

    def has_placeholders(self, template: str) -> bool:
        return _PLACEHOLDER_RE.search(template) is not None


_default = Interpolator()


def interpolate(template: str, variables: Mapping[str, str]) -> str:
    return _default.interpolate(template, variables)


def extract_variable_names(template: str) -> list[str]:
    return _default.extract_variable_names(template)


def find_unresolved(template: str, available: Iterable[str]) -> list[str]:
    return _default.find_unresolved(template, available)
