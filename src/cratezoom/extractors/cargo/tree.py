"""Build the dependency graph from ``cargo tree`` output.

Expected invocation::

    cargo tree --edges=no-build,no-proc-macro,no-dev,features --prefix=depth --color=never

Every line is a depth prefix followed by either a crate or a feature::

    0app v0.1.0 (/work/app)
    1serde feature "default"
    2serde v1.0.219
    2serde feature "std"
    3serde v1.0.219
    1serde feature "derive"
    2serde v1.0.219
    2serde_derive feature "default"
    3serde_derive v1.0.219
    1serde feature "std" (*)

A feature header ``A feature "i"`` is always followed, one level deeper, by
the crate ``A`` itself; the remaining children of the header are the
features that ``i`` enables.  ``(*)`` marks a subtree cargo already printed.
"""

from __future__ import annotations

import logging
import re

from cratezoom.errors import MalformedInputError, UsageError
from cratezoom.graph import DependencyGraph
from cratezoom.model import CrateNode

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"^(\d+)([A-Za-z].*)$")
_FEATURE_SEP = ' feature "'
_BACK_REF = " (*)"

# (node index, feature being expanded or None)
_Frame = tuple[int, "str | None"]


def parse_cargo_tree(output: str) -> DependencyGraph:
    """Parse depth-prefixed ``cargo tree`` output into a DependencyGraph.

    Raises MalformedInputError for lines that do not follow the format and
    UsageError when the output does not describe exactly one package.
    """
    lines = output.splitlines()
    if not lines:
        raise UsageError("one and only one package must be specified")

    graph = DependencyGraph()
    crate_indices: dict[str, int] = {}
    feature_crates: dict[tuple[str, str], int] = {}

    stack: list[_Frame] = []
    last_index = 0
    last_feature: str | None = None
    is_feature_first = False

    def add_edge(node_index: int, feature: str | None, line_number: int, line: str) -> None:
        # A feature "i"
        # |- A
        # |- B feature "j"
        #    |- B
        # Records i -> [j] on the edge A -> B.
        if not stack:
            raise MalformedInputError("crate without parent", line, line_number)
        parent_index, parent_feature = stack[-1]
        if parent_index == node_index:
            return
        edge = graph.add_edge(parent_index, node_index)
        if parent_feature is not None and feature is not None:
            edge.features.setdefault(parent_feature, []).append(feature)

    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            raise UsageError("one and only one package must be specified")

        m = _LINE_RE.match(line)
        if not m:
            raise MalformedInputError("missing depth prefix", line, line_number)
        depth = int(m.group(1))
        rest = m.group(2)
        is_back_ref = rest.endswith(_BACK_REF)
        payload = rest[: -len(_BACK_REF)] if is_back_ref else rest

        if line_number == 1:
            if depth != 0:
                raise MalformedInputError("first crate must have depth 0", line, line_number)
        elif depth == 0:
            raise UsageError("one and only one package must be specified")

        if is_feature_first:
            if depth != len(stack) + 1:
                raise MalformedInputError(
                    "feature header must be followed by its crate", line, line_number
                )
        elif depth < len(stack):
            del stack[depth:]
        elif depth == len(stack) + 1:
            stack.append((last_index, last_feature))
        elif depth > len(stack) + 1:
            raise MalformedInputError("depth skips a level", line, line_number)

        feature_at = payload.find(_FEATURE_SEP)
        if feature_at != -1:
            if is_feature_first:
                raise MalformedInputError(
                    "feature header must be followed by its crate", line, line_number
                )
            if not payload.endswith('"') or len(payload) <= feature_at + len(_FEATURE_SEP):
                raise MalformedInputError("unterminated feature name", line, line_number)
            short = payload[:feature_at]
            feature = payload[feature_at + len(_FEATURE_SEP) : -1]
            last_feature = feature
            if is_back_ref:
                node_index = feature_crates.get((short, feature))
                if node_index is None:
                    raise MalformedInputError(
                        "unmatched feature back-reference", line, line_number
                    )
                add_edge(node_index, feature, line_number, line)
            else:
                is_feature_first = True
            continue

        short_end = payload.find(" ")
        if short_end == -1:
            raise MalformedInputError("missing crate version", line, line_number)

        node_index = crate_indices.get(payload)
        if node_index is None:
            short, extra = payload[:short_end], payload[short_end + 1 :]
            node_index = graph.add_node(
                CrateNode(short=short.replace("-", "_"), extra=extra)
            )
            crate_indices[payload] = node_index

        if is_feature_first:
            # A feature "i"
            # |- A
            # Feature "i" is enabled on A.
            node = graph.node(node_index)
            feature_crates[(payload[:short_end], last_feature)] = node_index
            node.features[last_feature] = []

            # A feature "i"
            # |- A
            # |- A feature "j"
            #    |- A
            # Feature "i" enables "j": [i(j), j] afterwards.
            if stack:
                parent_index, parent_feature = stack[-1]
                if parent_index == node_index and parent_feature is not None:
                    node.features.setdefault(parent_feature, []).append(last_feature)
        else:
            last_feature = None

        if line_number > 1:
            add_edge(node_index, last_feature, line_number, line)

        last_index = node_index
        if is_feature_first:
            stack.append((last_index, last_feature))
            last_feature = None
        is_feature_first = False

    if is_feature_first:
        raise MalformedInputError("feature header without crate", lines[-1], len(lines))

    logger.debug(
        "cargo tree: %d crates, %d dependency edges",
        graph.node_count,
        graph.edge_count,
    )
    return graph
