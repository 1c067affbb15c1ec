"""Options for a cratezoom run, merged from a TOML file and the command line.

Lookup order for the config file (first found wins):

1. the path given with ``--config``;
2. ``cratezoom.toml`` in the project directory (keys at top level or under
   a ``[cratezoom]`` table);
3. ``[package.metadata.cratezoom]`` in the project's ``Cargo.toml``.

Keys are kebab-case versions of the :class:`Config` fields, e.g.::

    scheme = "dep-count"
    gradient = "viridis"
    threshold = "16KiB"
    excludes = ["^windows", "^wasm_bindgen$"]
    highlight = "dep"

Command-line flags override file values.
"""

from __future__ import annotations

import dataclasses
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from cratezoom.analysis import ColoringScheme
from cratezoom.coloring import Gradient
from cratezoom.errors import UsageError
from cratezoom.extractors.cargo import CargoOptions
from cratezoom.renderer.dot import DotOptions
from cratezoom.renderer.svg import SvgOptions
from cratezoom.template import LabelTemplates, parse_size

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "cratezoom.toml"


@dataclass
class Config:
    # cargo
    package: str | None = None
    bin: str | None = None
    features: str | None = None
    all_features: bool = False
    no_default_features: bool = False
    release: bool = False

    # graph
    excludes: list[str] = field(default_factory=list)
    root: str | None = None
    std: bool = False
    threshold: int | None = None
    depth: int | None = None

    # coloring
    scheme: ColoringScheme | None = ColoringScheme.CUM_SUM
    gradient: Gradient = Gradient.REDS
    gamma: float | None = None
    inverse_gradient: bool = False
    dark_mode: bool = False

    # output
    padding: float | None = None
    scale_factor: float | None = None
    separation_factor: float | None = None
    highlight: bool | None = None
    highlight_amount: float | None = None
    node_label_template: str | None = None
    node_tooltip_template: str | None = None
    edge_label_template: str | None = None
    edge_tooltip_template: str | None = None
    dot_only: bool = False
    output: str | None = None
    no_open: bool = False

    @classmethod
    def from_mapping(cls, data: dict[str, Any], source: str = "config") -> Config:
        """Build a Config from kebab-case TOML keys."""
        return cls().merged(_convert(data, source))

    def merged(self, overrides: dict[str, Any]) -> Config:
        """Return a copy with *overrides* applied.

        Only explicitly given options belong in *overrides*; a None value
        (e.g. ``scheme = "none"``) is applied like any other.
        """
        return dataclasses.replace(self, **overrides)

    def cargo_options(self) -> CargoOptions:
        return CargoOptions(
            package=self.package,
            bin=self.bin,
            features=self.features,
            all_features=self.all_features,
            no_default_features=self.no_default_features,
            release=self.release,
        )

    def label_templates(self) -> LabelTemplates:
        templates = {
            "node_label": self.node_label_template,
            "node_tooltip": self.node_tooltip_template,
            "edge_label": self.edge_label_template,
            "edge_tooltip": self.edge_tooltip_template,
        }
        return LabelTemplates(**{k: v for k, v in templates.items() if v is not None})

    def dot_options(self) -> DotOptions:
        return DotOptions(
            highlight=self.highlight,
            inverse_gradient=self.inverse_gradient,
            dark_mode=self.dark_mode,
        )

    def svg_options(self) -> SvgOptions:
        return SvgOptions(
            scale_factor=self.scale_factor,
            separation_factor=self.separation_factor,
            padding=self.padding,
            dark_mode=self.dark_mode,
            highlight=self.highlight,
            highlight_amount=self.highlight_amount,
        )


# ---------------------------------------------------------------------------
# Value parsers, shared with the CLI
# ---------------------------------------------------------------------------


def parse_scheme(value: str) -> ColoringScheme | None:
    """``cum-sum``, ``dep-count``, ``rev-dep-count`` or ``none``."""
    if value == "none":
        return None
    try:
        return ColoringScheme(value)
    except ValueError:
        raise ValueError(f"unknown coloring scheme: {value!r}") from None


def parse_gradient(value: str) -> Gradient:
    try:
        return Gradient(value)
    except ValueError:
        raise ValueError(f"unknown gradient: {value!r}") from None


def parse_highlight(value: str) -> bool:
    """``dep`` (dependencies) or ``rev-dep`` (reverse dependencies)."""
    if value == "dep":
        return True
    if value == "rev-dep":
        return False
    raise ValueError(f"invalid highlight value: {value!r}")


def parse_threshold(value: int | str) -> int:
    if isinstance(value, bool):
        raise TypeError("threshold must be a size")
    if isinstance(value, int):
        return value
    return parse_size(value)


def _expect(kind: type) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if kind is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
            raise TypeError(f"expected {kind.__name__}, got {type(value).__name__}")
        return value

    return check


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError("expected a list of strings")
    return list(value)


def _features(value: Any) -> str:
    if isinstance(value, list):
        return ",".join(_string_list(value))
    return _expect(str)(value)


def _from_str(parser: Callable[[str], Any]) -> Callable[[Any], Any]:
    def convert(value: Any) -> Any:
        return parser(_expect(str)(value))

    return convert


_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "package": _expect(str),
    "bin": _expect(str),
    "features": _features,
    "all_features": _expect(bool),
    "no_default_features": _expect(bool),
    "release": _expect(bool),
    "excludes": _string_list,
    "root": _expect(str),
    "std": _expect(bool),
    "threshold": parse_threshold,
    "depth": _expect(int),
    "scheme": _from_str(parse_scheme),
    "gradient": _from_str(parse_gradient),
    "gamma": _expect(float),
    "inverse_gradient": _expect(bool),
    "dark_mode": _expect(bool),
    "padding": _expect(float),
    "scale_factor": _expect(float),
    "separation_factor": _expect(float),
    "highlight": _from_str(parse_highlight),
    "highlight_amount": _expect(float),
    "node_label_template": _expect(str),
    "node_tooltip_template": _expect(str),
    "edge_label_template": _expect(str),
    "edge_tooltip_template": _expect(str),
    "dot_only": _expect(bool),
    "output": _expect(str),
    "no_open": _expect(bool),
}


def _convert(data: dict[str, Any], source: str) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, raw in data.items():
        name = key.replace("-", "_")
        converter = _CONVERTERS.get(name)
        if converter is None:
            logger.warning("%s: ignoring unknown option %r", source, key)
            continue
        try:
            values[name] = converter(raw)
        except (TypeError, ValueError) as e:
            raise UsageError(f"{source}: invalid value for {key!r}: {e}") from e
    return values


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise UsageError(f"could not read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise UsageError(f"could not parse {path}: {e}") from e


def find_config(project_dir: Path) -> tuple[dict[str, Any], str] | None:
    """Return the raw config table and its source name, if any."""
    config_toml = project_dir / CONFIG_FILENAME
    if config_toml.exists():
        data = _read_toml(config_toml)
        return data.get("cratezoom", data), str(config_toml)

    cargo_toml = project_dir / "Cargo.toml"
    if cargo_toml.exists():
        data = _read_toml(cargo_toml)
        table = data.get("package", {}).get("metadata", {}).get("cratezoom")
        if isinstance(table, dict):
            return table, f"{cargo_toml} [package.metadata.cratezoom]"

    return None


def load_config(
    project_dir: Path,
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load the config file for *project_dir* and apply CLI *overrides*."""
    if config_path is not None:
        data = _read_toml(config_path)
        found: tuple[dict[str, Any], str] | None = (
            data.get("cratezoom", data),
            str(config_path),
        )
    else:
        found = find_config(project_dir)

    config = Config()
    if found is not None:
        table, source = found
        logger.debug("Using config from %s", source)
        config = Config.from_mapping(table, source)

    if overrides:
        config = config.merged(overrides)
    return config
