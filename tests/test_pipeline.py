"""End-to-end tests for the pipeline and the command-line entry point."""

import webbrowser
from pathlib import Path

import graphviz
import pytest

from cratezoom import pipeline
from cratezoom.cli import main
from cratezoom.config import Config
from cratezoom.errors import AmbiguousSelectorError, UsageError
from cratezoom.pipeline import build_graph, prune_graph, render, run

FIXTURES = Path(__file__).parent / "fixtures"
TREE = (FIXTURES / "tree_features.txt").read_text()
BLOAT = (FIXTURES / "bloat.json").read_text()


# ── Helpers ───────────────────────────────────────────────────

def _shorts(graph):
    return {graph.node(i).short for i in graph.node_indices()}


@pytest.fixture
def graph():
    return build_graph(TREE, BLOAT)


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A Cargo project whose cargo commands replay the fixtures."""
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "app"\nversion = "0.1.0"\n')
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(pipeline, "run_cargo_tree", lambda project_dir, options: TREE)
    monkeypatch.setattr(pipeline, "run_cargo_bloat", lambda project_dir, options: BLOAT)
    return tmp_path


@pytest.fixture
def opened(monkeypatch):
    urls = []
    monkeypatch.setattr(webbrowser, "open", urls.append)
    return urls


# ── Graph building and pruning ────────────────────────────────

class TestBuildGraph:
    def test_sizes_attached(self, graph):
        sizes = {graph.node(i).short: graph.size(i) for i in graph.node_indices()}
        assert sizes["clap_builder"] == 150000
        assert sizes["serde_json"] == 60000
        assert sizes["clap_derive"] is None

    def test_std_node(self):
        graph = build_graph(TREE, BLOAT, std=True)
        assert graph.std is not None
        assert graph.size(graph.std) == 200000

    def test_without_std_flag_std_size_unused(self, graph):
        assert graph.std is None
        assert "std" not in _shorts(graph)


class TestPruneGraph:
    def test_change_root(self, graph):
        prune_graph(graph, Config(root="^clap$"))
        assert graph.node(graph.root).short == "clap"
        assert _shorts(graph) == {"clap", "clap_builder", "anstyle", "clap_derive"}

    def test_excludes(self, graph):
        prune_graph(graph, Config(excludes=["^clap$"]))
        assert _shorts(graph) == {"app", "serde_json", "serde"}

    def test_exclude_ambiguous(self, graph):
        with pytest.raises(AmbiguousSelectorError):
            prune_graph(graph, Config(excludes=["clap"]))

    def test_exclude_root(self, graph):
        with pytest.raises(UsageError):
            prune_graph(graph, Config(excludes=["^app$"]))

    def test_depth(self, graph):
        prune_graph(graph, Config(depth=1))
        assert _shorts(graph) == {"app", "clap", "serde_json"}

    def test_root_then_depth(self, graph):
        prune_graph(graph, Config(root="^clap$", depth=1))
        assert _shorts(graph) == {"clap", "clap_builder", "clap_derive"}


# ── Rendering ─────────────────────────────────────────────────

class TestRender:
    def test_dot_only(self, graph):
        source = render(graph, Config(dot_only=True))
        assert source.startswith("digraph app {")
        assert "label=clap_builder" in source

    def test_threshold_removes_small_crates(self, graph):
        render(graph, Config(dot_only=True, threshold=100000))
        assert _shorts(graph) == {"app", "clap", "clap_builder"}

    def test_threshold_without_coloring(self, graph):
        render(graph, Config(dot_only=True, scheme=None, threshold=100000))
        assert _shorts(graph) == {"app", "clap", "clap_builder"}

    def test_non_zero_threshold(self, graph):
        render(graph, Config(dot_only=True, threshold=1))
        assert "clap_derive" not in _shorts(graph)
        assert "clap" in _shorts(graph)

    def test_svg(self, graph, monkeypatch):
        monkeypatch.setattr(
            graphviz.Digraph, "pipe", lambda self, **kw: '<svg><g id="graph0"></g></svg>'
        )
        svg = render(graph, Config(highlight=True))
        assert svg.startswith("<svg><style>")


class TestRun:
    def test_writes_dot_file(self, project, opened):
        out = run(project, Config(dot_only=True))
        assert out == Path("output.gv")
        assert (project / "output.gv").read_text().startswith("digraph app {")
        assert opened == []

    def test_writes_svg_and_opens_browser(self, project, opened, monkeypatch):
        monkeypatch.setattr(graphviz.Digraph, "pipe", lambda self, **kw: "<svg></svg>")
        out = run(project, Config(output="graphs/deps.svg"))
        assert (project / "graphs" / "deps.svg").read_text() == "<svg></svg>"
        assert opened == [out.resolve().as_uri()]

    def test_no_open(self, project, opened, monkeypatch):
        monkeypatch.setattr(graphviz.Digraph, "pipe", lambda self, **kw: "<svg></svg>")
        run(project, Config(no_open=True))
        assert opened == []

    def test_not_a_cargo_project(self, tmp_path):
        with pytest.raises(UsageError, match="Cargo.toml"):
            run(tmp_path, Config())

    def test_cargo_failure(self, project, monkeypatch):
        monkeypatch.setattr(pipeline, "run_cargo_bloat", lambda project_dir, options: None)
        with pytest.raises(UsageError, match="cargo bloat"):
            run(project, Config(dot_only=True))


# ── CLI ───────────────────────────────────────────────────────

class TestCli:
    def test_dot_only(self, project, opened):
        main([str(project), "--dot-only", "-s", "none", "-E", "^serde_json$"])
        source = (project / "output.gv").read_text()
        assert "label=clap" in source
        assert "serde" not in source

    def test_config_file_and_flags(self, project, opened):
        (project / "cratezoom.toml").write_text('dot-only = true\ndepth = 3\noutput = "a.gv"\n')
        main([str(project), "--depth", "1"])
        source = (project / "a.gv").read_text()
        assert "clap_builder" not in source

    def test_error_exits_nonzero(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path)])
        assert exc.value.code == 1

    def test_ambiguous_root_exits_nonzero(self, project, opened):
        with pytest.raises(SystemExit) as exc:
            main([str(project), "--dot-only", "--root", "clap"])
        assert exc.value.code == 1

    def test_bad_option_value(self, project, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(project), "--gradient", "rainbow"])
        assert exc.value.code == 2
