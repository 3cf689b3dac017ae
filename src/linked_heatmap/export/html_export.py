"""HTMLExporter: render a LongTable + SegmentSet as a clickable plotly page."""

from __future__ import annotations

import pathlib

import jinja2
import markupsafe
import numpy as np
import plotly.graph_objects as go

from ..core.color_scale import ColorScale
from ..layout.dendrogram_layout import SegmentSet
from ..transform.reshape import LongTable
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)

_TEMPLATE_DIR = pathlib.Path(__file__).parent / "templates"

DIV_ID = "heatmap-container"
DENDRO_LINE = dict(color="rgba(60, 60, 60, 0.9)", width=1)
ROW_PX = 18
MIN_HEIGHT_PX = 400


def _attribute(value) -> markupsafe.Markup:
    """Escape ``value`` for a quoted HTML attribute.

    Action strings may arrive already entity-escaped or raw (``escape="none"``);
    unescaping first yields the same attribute text either way.
    """
    return markupsafe.escape(markupsafe.Markup(str(value)).unescape())


class HTMLExporter:
    """Export a clustered, link-annotated heatmap as a standalone HTML file.

    Consumes only the renderer contract: a LongTable carrying the
    tooltip and action strings, and a SegmentSet. Cells show the
    tooltip on hover and open the row's action string on click; row
    labels are links to the same target.
    """

    @staticmethod
    def build_figure(
        long_table: LongTable,
        segments: SegmentSet,
        tooltip_column: str = "tooltip",
        action_column: str = "action",
        color_scale: ColorScale | None = None,
        title: str | None = None,
        link_rows: bool = True,
    ) -> go.Figure:
        """Build the plotly figure: one heatmap trace plus the dendrogram lines."""
        matrix = long_table.to_matrix()
        values = matrix.to_numpy(dtype=np.float64)
        n_rows, n_cols = values.shape
        categories = long_table.categories
        row_ids = long_table.row_order

        # Action/tooltip strings are already escaped for attribute embedding
        tooltips = long_table.per_observation(tooltip_column)
        actions = long_table.per_observation(action_column)

        if color_scale is None:
            color_scale = ColorScale.from_values("viridis", values)

        x = list(range(n_cols))
        y = [segments.leaf_offset + k for k in range(n_rows)]

        hovertext = [
            [
                f"{tooltips[i]}<br>{markupsafe.escape(str(categories[j]))}: {values[i, j]:.4g}"
                for j in range(n_cols)
            ]
            for i in range(n_rows)
        ]
        customdata = [[actions[i]] * n_cols for i in range(n_rows)]

        fig = go.Figure()
        fig.add_trace(go.Heatmap(
            z=values,
            x=x,
            y=y,
            colorscale=color_scale.to_plotly(),
            zmin=color_scale.vmin,
            zmax=color_scale.vmax,
            hovertext=hovertext,
            hoverinfo="text",
            customdata=customdata,
            colorbar=dict(title=long_table.value_name, x=1.02),
            xgap=1,
            ygap=1,
        ))

        if len(segments) > 0:
            xs: list = []
            ys: list = []
            for x0, y0, x1, y1 in segments.to_lines():
                xs.extend([x0, x1, None])
                ys.extend([y0, y1, None])
            fig.add_trace(go.Scatter(
                x=xs,
                y=ys,
                mode="lines",
                line=DENDRO_LINE,
                hoverinfo="skip",
                showlegend=False,
            ))
            x_max = max(seg.xend for seg in segments)
        else:
            x_max = n_cols - 0.5

        if link_rows:
            row_labels = [
                f'<a href="{_attribute(actions[i])}">{markupsafe.escape(str(row_ids[i]))}</a>'
                for i in range(n_rows)
            ]
        else:
            row_labels = [str(markupsafe.escape(str(r))) for r in row_ids]

        fig.update_layout(
            title=title,
            template="plotly_white",
            height=max(MIN_HEIGHT_PX, ROW_PX * n_rows + 150),
            margin=dict(l=120, r=40, t=60, b=60),
            xaxis=dict(
                tickvals=x,
                ticktext=[str(c) for c in categories],
                range=[-0.5, x_max + 0.25],
                showgrid=False,
                zeroline=False,
                title=long_table.category_name,
            ),
            yaxis=dict(
                tickvals=y,
                ticktext=row_labels,
                range=[segments.leaf_offset - 0.5, segments.leaf_offset + n_rows - 0.5],
                showgrid=False,
                zeroline=False,
            ),
        )
        return fig

    @staticmethod
    def export(
        path: str | pathlib.Path,
        long_table: LongTable,
        segments: SegmentSet,
        tooltip_column: str = "tooltip",
        action_column: str = "action",
        title: str = "linked-heatmap",
        color_scale: ColorScale | None = None,
        include_plotlyjs: bool | str = "cdn",
    ) -> None:
        """Write a standalone HTML file.

        Parameters
        ----------
        path : str or Path
            Output file path.
        long_table : LongTable
        segments : SegmentSet
        tooltip_column, action_column : str
            Observation-level columns of ``long_table``.
        title : str
            HTML page and figure title.
        color_scale : ColorScale, optional
            Defaults to viridis over the data range.
        include_plotlyjs : bool or str
            Passed to plotly: ``"cdn"`` links plotly.js, ``True`` inlines it.
        """
        path = pathlib.Path(path)

        fig = HTMLExporter.build_figure(
            long_table,
            segments,
            tooltip_column=tooltip_column,
            action_column=action_column,
            color_scale=color_scale,
            title=title,
        )
        plot_html = fig.to_html(
            full_html=False,
            include_plotlyjs=include_plotlyjs,
            div_id=DIV_ID,
        )

        env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(_TEMPLATE_DIR)),
            autoescape=True,
        )
        template = env.get_template("standalone.html.j2")
        html = template.render(
            title=title,
            div_id=DIV_ID,
            plot_html=markupsafe.Markup(plot_html),
        )

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        logger.info("Wrote heatmap (%d cells) to %s", len(long_table), path)
