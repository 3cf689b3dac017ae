"""Pipeline configuration: dataclass defaults, loadable from YAML."""

from __future__ import annotations

import dataclasses
import pathlib
from dataclasses import dataclass, field
from typing import Any

import yaml

from .utils.logging_utils import get_logger

logger = get_logger(__name__)

UCSC_LINK_TEMPLATE = (
    "http://genome.ucsc.edu/cgi-bin/hgTracks?db=hg19"
    "&position={{ chrom }}:{{ start }}-{{ end }}"
)


def _default_split() -> list[dict]:
    return [
        {"delimiter": ":", "fields": ["chrom", "rest"]},
        {"delimiter": "-", "fields": ["start", "end"]},
    ]


@dataclass
class InputConfig:
    path: str | None = None
    sep: str = "\t"
    # None disables quoting
    quotechar: str | None = None
    # None = first column
    id_column: str | None = None


@dataclass
class ClusterConfig:
    enabled: bool = True
    # None = every numeric column
    numeric_columns: list[str] | None = None
    metric: str = "euclidean"
    method: str = "ward"
    optimal_ordering: bool = False


@dataclass
class AnnotateConfig:
    descriptor_column: str = "position"
    split: list[dict] = field(default_factory=_default_split)
    link_template: str = UCSC_LINK_TEMPLATE
    tooltip_template: str | None = None
    action_column: str = "action"
    tooltip_column: str = "tooltip"
    escape: str = "html"


@dataclass
class DendrogramConfig:
    padding: float = 0.1
    shrink_exponent: float = 0.75
    scale: float = 1.0
    # Leaf-axis position of the first row
    offset: float = 1.0


@dataclass
class ReshapeConfig:
    # None = the numeric columns in table order
    category_order: list[str] | None = None
    category_name: str = "category"
    value_name: str = "value"


@dataclass
class OutputConfig:
    path: str = "heatmap.html"
    title: str = "Clustered heatmap"
    colormap: str = "viridis"
    # Passed to plotly: "cdn", True (inline) or False
    include_plotlyjs: Any = "cdn"


_SECTIONS = {
    "input": InputConfig,
    "cluster": ClusterConfig,
    "annotate": AnnotateConfig,
    "dendrogram": DendrogramConfig,
    "reshape": ReshapeConfig,
    "output": OutputConfig,
}


@dataclass
class PipelineConfig:
    """All settings for one heatmap run, grouped by stage."""

    input: InputConfig = field(default_factory=InputConfig)
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    annotate: AnnotateConfig = field(default_factory=AnnotateConfig)
    dendrogram: DendrogramConfig = field(default_factory=DendrogramConfig)
    reshape: ReshapeConfig = field(default_factory=ReshapeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PipelineConfig:
        """Build a config from nested dicts. Unknown keys raise ValueError."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration must be a mapping, got {type(data).__name__}."
            )
        unknown = set(data) - set(_SECTIONS)
        if unknown:
            raise ValueError(
                f"Unknown configuration sections: {sorted(unknown)}. "
                f"Valid: {sorted(_SECTIONS)}"
            )
        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = data.get(name) or {}
            if not isinstance(values, dict):
                raise ValueError(f"Section '{name}' must be a mapping.")
            valid = {f.name for f in dataclasses.fields(section_cls)}
            bad = set(values) - valid
            if bad:
                raise ValueError(
                    f"Unknown keys in section '{name}': {sorted(bad)}. "
                    f"Valid: {sorted(valid)}"
                )
            sections[name] = section_cls(**values)
        return cls(**sections)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def load_config(path: str | pathlib.Path | None) -> PipelineConfig:
    """Load a PipelineConfig from a YAML file (defaults when ``path`` is None)."""
    if path is None:
        return PipelineConfig()
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    config = PipelineConfig.from_dict(data)
    logger.info("Loaded configuration from %s", path)
    return config
