"""Tests for byte-size helpers and label templates."""

import pytest

from cratezoom.analysis import ColoringScheme, ColoringValues
from cratezoom.errors import TemplateError
from cratezoom.model import CrateEdge, CrateNode
from cratezoom.template import LabelTemplates, format_size, parse_size


class TestFormatSize:
    @pytest.mark.parametrize(
        "size, binary, expected",
        [
            (0, True, "0 B"),
            (1023, True, "1023 B"),
            (1536, True, "1.50 KiB"),
            (1024 * 1024, True, "1.00 MiB"),
            (999, False, "999 B"),
            (2_100_000, False, "2.10 MB"),
        ],
    )
    def test_format(self, size, binary, expected):
        assert format_size(size, binary) == expected


class TestParseSize:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("4096", 4096),
            ("21KiB", 21 * 1024),
            ("69 KB", 69_000),
            ("69k", 69_000),
            ("1.5MiB", int(1.5 * 1024 * 1024)),
            ("2 MB", 2_000_000),
            ("non-zero", 1),
            ("Non-Zero", 1),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_size(text) == expected

    @pytest.mark.parametrize("text", ["", "lots", "12 XB", "KiB"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_size(text)


class TestLabelTemplates:
    @pytest.fixture
    def node(self):
        return CrateNode(
            short="serde_json",
            extra="v1.0.140",
            features={"std": [], "default": ["std"]},
        )

    def test_defaults(self, node):
        label, tooltip = LabelTemplates().node(node, 2048, 0)
        assert label == "serde_json"
        assert tooltip == "serde_json v1.0.140\n2.00 KiB\ndefault(std),std"

    def test_value_fields_empty_without_coloring(self, node):
        templates = LabelTemplates(node_label="[$value][$scheme]")
        label, _ = templates.node(node, 10, 0)
        assert label == "[][]"

    def test_value_fields_with_coloring(self, node):
        values = ColoringValues(ColoringScheme.CUM_SUM, [3000], gamma=0.25)
        templates = LabelTemplates(node_label="$value $value_decimal ($scheme)")
        label, _ = templates.node(node, 10, 0, values)
        assert label == "3000 3.00 kB (cumulative sum)"

    def test_edge_defaults(self):
        source = CrateNode(short="clap")
        target = CrateNode(short="clap_builder")
        edge = CrateEdge(features={"std": ["std"], "color": ["color"]})
        label, tooltip = LabelTemplates().edge(source, target, edge)
        assert label == "color(color),\nstd(std)"
        assert tooltip == "clap -> clap_builder"

    def test_unknown_placeholder(self):
        with pytest.raises(TemplateError, match="nope"):
            LabelTemplates(node_label="$short $nope")

    def test_node_placeholder_in_edge_template(self):
        with pytest.raises(TemplateError):
            LabelTemplates(edge_label="$size")

    def test_malformed_template(self):
        with pytest.raises(TemplateError):
            LabelTemplates(node_tooltip="costs $")
