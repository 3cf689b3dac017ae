"""LinkedHeatmap: the main user-facing API (builder pattern)."""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Sequence

import pandas as pd

from .annotation.descriptor import SplitRule, SplitSpec
from .config import PipelineConfig
from .core.color_scale import ColorScale
from .core.table import ObservationTable, read_observation_table
from .export.html_export import HTMLExporter
from .transform.pipeline import PipelineResult, TransformPipeline


class LinkedHeatmap:
    """Clustered heatmap builder whose cells link out to a per-row target.

    Usage::

        import linked_heatmap as lh

        hm = lh.LinkedHeatmap.from_file("events.tsv", id_column="event")
        hm.cluster_rows(metric="euclidean", method="ward")
        hm.set_links(
            "position",
            [(":", ("chrom", "rest")), ("-", ("start", "end"))],
            "http://genome.ucsc.edu/cgi-bin/hgTracks?db=hg19"
            "&position={{ chrom }}:{{ start }}-{{ end }}",
        )
        hm.set_category_order(["t0", "t6", "t24"])
        hm.save_html("events.html")
    """

    def __init__(
        self,
        data: ObservationTable | pd.DataFrame,
        id_column: str | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        if isinstance(data, ObservationTable):
            if id_column is not None and id_column != data.id_column:
                raise ValueError(
                    f"Table already uses '{data.id_column}' as its id column."
                )
            self._table = data
        else:
            self._table = ObservationTable.from_dataframe(data, id_column=id_column)
        self._config = copy.deepcopy(config) if config is not None else PipelineConfig()
        self._result: PipelineResult | None = None

    @classmethod
    def from_file(
        cls,
        path: str | pathlib.Path,
        id_column: str | None = None,
        sep: str = "\t",
        quotechar: str | None = None,
    ) -> LinkedHeatmap:
        """Read a delimited table (tab-separated, unquoted by default)."""
        table = read_observation_table(
            path, id_column=id_column, sep=sep, quotechar=quotechar
        )
        return cls(table)

    @property
    def table(self) -> ObservationTable:
        return self._table

    @property
    def config(self) -> PipelineConfig:
        return self._config

    # --- Clustering ---

    def cluster_rows(
        self,
        metric: str = "euclidean",
        method: str = "ward",
        columns: Sequence[str] | None = None,
        optimal_ordering: bool = False,
    ) -> LinkedHeatmap:
        """Cluster rows hierarchically on ``columns`` (default: all numeric)."""
        self._config.cluster.enabled = True
        self._config.cluster.metric = metric
        self._config.cluster.method = method
        self._config.cluster.optimal_ordering = optimal_ordering
        self._config.cluster.numeric_columns = list(columns) if columns else None
        self._result = None
        return self

    def keep_row_order(self) -> LinkedHeatmap:
        """Disable clustering; rows are drawn in input order."""
        self._config.cluster.enabled = False
        self._result = None
        return self

    # --- Dendrogram ---

    def set_dendrogram(
        self,
        padding: float | None = None,
        shrink_exponent: float | None = None,
        scale: float | None = None,
    ) -> LinkedHeatmap:
        """Adjust the dendrogram display transform."""
        if padding is not None:
            self._config.dendrogram.padding = padding
        if shrink_exponent is not None:
            self._config.dendrogram.shrink_exponent = shrink_exponent
        if scale is not None:
            self._config.dendrogram.scale = scale
        self._result = None
        return self

    # --- Links ---

    def set_links(
        self,
        descriptor_column: str,
        split: SplitSpec | Sequence[SplitRule | tuple[str, Sequence[str]]],
        link_template: str,
        tooltip_template: str | None = None,
        escape: str = "html",
    ) -> LinkedHeatmap:
        """Configure how the descriptor is split and the link string built.

        Parameters
        ----------
        descriptor_column : str
            Column holding the composite descriptor.
        split : SplitSpec or sequence
            A SplitSpec, or a list of SplitRules / ``(delimiter, fields)`` pairs.
        link_template, tooltip_template : str
            Jinja2 templates over row fields and descriptor components.
        escape : {"html", "none"}
        """
        if isinstance(split, SplitSpec):
            rules = split.rules
        else:
            rules = [r if isinstance(r, SplitRule) else SplitRule(r[0], tuple(r[1])) for r in split]
            # Validate rule chaining now rather than at build time
            rules = SplitSpec(rules).rules
        ann = self._config.annotate
        ann.descriptor_column = descriptor_column
        ann.split = [
            {"delimiter": r.delimiter, "fields": list(r.fields), "source": r.source}
            for r in rules
        ]
        ann.link_template = link_template
        ann.tooltip_template = tooltip_template
        ann.escape = escape
        self._result = None
        return self

    # --- Columns ---

    def set_category_order(self, order: Sequence[Any]) -> LinkedHeatmap:
        """Explicit left-to-right order of the measurement columns."""
        self._config.reshape.category_order = list(order)
        self._result = None
        return self

    def set_value_name(self, value_name: str, category_name: str | None = None) -> LinkedHeatmap:
        self._config.reshape.value_name = value_name
        if category_name is not None:
            self._config.reshape.category_name = category_name
        self._result = None
        return self

    # --- Output ---

    def set_colormap(self, cmap: str = "viridis") -> LinkedHeatmap:
        """Matplotlib colormap name used for the cells."""
        ColorScale(cmap)  # validates the name
        self._config.output.colormap = cmap
        return self

    def set_title(self, title: str) -> LinkedHeatmap:
        self._config.output.title = title
        return self

    def build(self) -> PipelineResult:
        """Run (or reuse) the transform pipeline."""
        if self._result is None:
            self._result = TransformPipeline.run(self._table, self._config)
        return self._result

    def to_figure(self):
        """Return the plotly Figure without writing anything."""
        result = self.build()
        return HTMLExporter.build_figure(
            result.long_table,
            result.segments,
            tooltip_column=self._config.annotate.tooltip_column,
            action_column=self._config.annotate.action_column,
            color_scale=self._color_scale(result),
            title=self._config.output.title,
        )

    def save_html(
        self,
        path: str | pathlib.Path | None = None,
        include_plotlyjs: bool | str | None = None,
    ) -> pathlib.Path:
        """Write the standalone HTML file and return its path."""
        result = self.build()
        out = pathlib.Path(path or self._config.output.path)
        HTMLExporter.export(
            out,
            result.long_table,
            result.segments,
            tooltip_column=self._config.annotate.tooltip_column,
            action_column=self._config.annotate.action_column,
            title=self._config.output.title,
            color_scale=self._color_scale(result),
            include_plotlyjs=(
                self._config.output.include_plotlyjs
                if include_plotlyjs is None else include_plotlyjs
            ),
        )
        return out

    def _color_scale(self, result: PipelineResult) -> ColorScale:
        values = result.long_table.column(result.long_table.value_name).to_numpy(dtype=float)
        return ColorScale.from_values(self._config.output.colormap, values)
