"""Node and edge records of the crate dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CrateNode:
    """A crate in the dependency graph.

    ``short`` already has ``-`` rewritten to ``_`` as used in code and in
    compiled artifact names; ``extra`` is the version plus an optional path
    or git source, kept verbatim.
    """

    short: str
    extra: str = ""
    # feature -> sub-features it directly enables, e.g.
    # {"default": ["std"], "std": []}
    features: dict[str, list[str]] = field(default_factory=dict)

    @property
    def full(self) -> str:
        """Full crate name, e.g. ``serde_json v1.0.140``."""
        if not self.extra:
            return self.short
        return f"{self.short} {self.extra}"


@dataclass
class CrateEdge:
    """Dependency of a source crate on a target crate."""

    # source feature -> target features it enables
    features: dict[str, list[str]] = field(default_factory=dict)


def format_features(features: dict[str, list[str]], sep: str = ",") -> str:
    """Render a feature map as ``a,b(c,d)`` in feature-name order."""
    parts = []
    for name in sorted(features):
        enabled = features[name]
        parts.append(f"{name}({','.join(enabled)})" if enabled else name)
    return sep.join(parts)
