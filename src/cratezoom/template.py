"""Node and edge labels and tooltips, plus byte-size formatting helpers.

Templates use :class:`string.Template` syntax, e.g. ``"$short ($size_binary)"``.

Node placeholders: ``short``, ``extra``, ``full``, ``size``, ``size_binary``,
``size_decimal``, ``value``, ``value_binary``, ``value_decimal``,
``features`` and ``scheme``.  The ``value*`` and ``scheme`` placeholders are
empty when the graph is not colored.

Edge placeholders: ``source``, ``target`` and ``features``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from string import Template

from cratezoom.analysis import ColoringValues
from cratezoom.errors import TemplateError
from cratezoom.model import CrateEdge, CrateNode, format_features

NODE_FIELDS = frozenset(
    {
        "short",
        "extra",
        "full",
        "size",
        "size_binary",
        "size_decimal",
        "value",
        "value_binary",
        "value_decimal",
        "features",
        "scheme",
    }
)
EDGE_FIELDS = frozenset({"source", "target", "features"})

DEFAULT_NODE_LABEL = "$short"
DEFAULT_NODE_TOOLTIP = "$full\n$size_binary\n$features"
DEFAULT_EDGE_LABEL = "$features"
DEFAULT_EDGE_TOOLTIP = "$source -> $target"

_BINARY_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]
_DECIMAL_UNITS = ["B", "kB", "MB", "GB", "TB", "PB"]


def format_size(size: int, binary: bool = True) -> str:
    """Human-readable byte size: ``512 B``, ``1.50 KiB``, ``2.10 MB``."""
    base = 1024 if binary else 1000
    units = _BINARY_UNITS if binary else _DECIMAL_UNITS
    if size < base:
        return f"{size} B"
    value = float(size)
    for unit in units[1:]:
        value /= base
        if value < base or unit == units[-1]:
            return f"{value:.2f} {unit}"
    raise AssertionError("unreachable")


_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*(?:([kmgtp])(i)?)?b?\s*$", re.I)
_SIZE_POWERS = {"k": 1, "m": 2, "g": 3, "t": 4, "p": 5}


def parse_size(text: str) -> int:
    """Parse a threshold such as ``21KiB``, ``69 KB``, ``4096`` or ``non-zero``.

    ``K``/``KB`` are decimal (1000) and ``KiB`` is binary (1024).
    """
    if text.strip().lower() == "non-zero":
        return 1
    m = _SIZE_RE.match(text)
    if not m:
        raise ValueError(f"invalid byte size: {text!r}")
    number, prefix, binary = m.groups()
    multiplier = 1
    if prefix:
        multiplier = (1024 if binary else 1000) ** _SIZE_POWERS[prefix.lower()]
    return int(float(number) * multiplier)


def _compile(name: str, text: str, allowed: frozenset[str]) -> Template:
    template = Template(text)
    if not template.is_valid():
        raise TemplateError(f"invalid {name} template: {text!r}")
    unknown = set(template.get_identifiers()) - allowed
    if unknown:
        raise TemplateError(
            f"unknown placeholder(s) in {name} template: {', '.join(sorted(unknown))}"
        )
    return template


@dataclass
class LabelTemplates:
    node_label: str = DEFAULT_NODE_LABEL
    node_tooltip: str = DEFAULT_NODE_TOOLTIP
    edge_label: str = DEFAULT_EDGE_LABEL
    edge_tooltip: str = DEFAULT_EDGE_TOOLTIP

    def __post_init__(self) -> None:
        self._node_label = _compile("node label", self.node_label, NODE_FIELDS)
        self._node_tooltip = _compile("node tooltip", self.node_tooltip, NODE_FIELDS)
        self._edge_label = _compile("edge label", self.edge_label, EDGE_FIELDS)
        self._edge_tooltip = _compile("edge tooltip", self.edge_tooltip, EDGE_FIELDS)

    def node(
        self,
        node: CrateNode,
        size: int,
        index: int,
        values: ColoringValues | None = None,
    ) -> tuple[str, str]:
        """Return ``(label, tooltip)`` for a crate."""
        context = {
            "short": node.short,
            "extra": node.extra,
            "full": node.full,
            "size": str(size),
            "size_binary": format_size(size),
            "size_decimal": format_size(size, binary=False),
            "value": "",
            "value_binary": "",
            "value_decimal": "",
            "features": format_features(node.features),
            "scheme": "",
        }
        if values is not None:
            value = values.value(index)
            context["value"] = str(value)
            context["value_binary"] = format_size(value)
            context["value_decimal"] = format_size(value, binary=False)
            context["scheme"] = values.scheme.description
        return (
            self._node_label.substitute(context),
            self._node_tooltip.substitute(context),
        )

    def edge(self, source: CrateNode, target: CrateNode, edge: CrateEdge) -> tuple[str, str]:
        """Return ``(label, tooltip)`` for a dependency."""
        context = {
            "source": source.short,
            "target": target.short,
            "features": format_features(edge.features, sep=",\n"),
        }
        return (
            self._edge_label.substitute(context),
            self._edge_tooltip.substitute(context),
        )
