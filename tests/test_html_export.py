"""Tests for HTMLExporter."""

import plotly.graph_objects as go
import pytest

from linked_heatmap.api import LinkedHeatmap
from linked_heatmap.core.color_scale import ColorScale
from linked_heatmap.core.table import ObservationTable
from linked_heatmap.export.html_export import DIV_ID, HTMLExporter
from linked_heatmap.transform.pipeline import TransformPipeline


@pytest.fixture
def result(clustered_df):
    return TransformPipeline.run(ObservationTable(clustered_df, id_column="event"))


class TestBuildFigure:
    def test_traces(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        assert isinstance(fig, go.Figure)
        assert isinstance(fig.data[0], go.Heatmap)
        assert isinstance(fig.data[1], go.Scatter)

    def test_heatmap_matches_long_table(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        heat = fig.data[0]
        matrix = result.long_table.to_matrix()
        assert [list(row) for row in heat.z] == matrix.to_numpy().tolist()
        assert list(fig.layout.xaxis.ticktext) == list(result.long_table.categories)

    def test_rows_align_with_dendrogram_leaves(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        leaf_y = sorted({s.y for s in result.segments if len(s.member_ids) == 1})
        assert list(fig.data[0].y) == leaf_y

    def test_dendrogram_right_of_cells(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        n_cols = len(result.long_table.categories)
        xs = [x for x in fig.data[1].x if x is not None]
        assert min(xs) > n_cols - 0.5

    def test_customdata_carries_actions(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        actions = result.long_table.per_observation("action")
        assert [row[0] for row in fig.data[0].customdata] == actions

    def test_hover_has_tooltip(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        first = fig.data[0].hovertext[0][0]
        assert result.long_table.per_observation("tooltip")[0] in first

    def test_row_labels_are_links(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        labels = list(fig.layout.yaxis.ticktext)
        assert all(label.startswith('<a href="') for label in labels)

    def test_row_label_href_not_double_escaped(self, result):
        fig = HTMLExporter.build_figure(result.long_table, result.segments)
        actions = result.long_table.per_observation("action")
        label = fig.layout.yaxis.ticktext[0]
        assert label.startswith(f'<a href="{actions[0]}">')
        assert "&amp;amp;" not in label

    def test_unescaped_action_cannot_break_href(self, clustered_df):
        clustered_df.loc[0, "position"] = 'chr1:1-10" onclick="x'
        hm = LinkedHeatmap(clustered_df, id_column="event").set_links(
            "position",
            [(":", ("chrom", "rest")), ("-", ("start", "end"))],
            "https://example.org/?q={{ chrom }}:{{ start }}-{{ end }}",
            escape="none",
        )
        fig = hm.to_figure()
        label = next(t for t in fig.layout.yaxis.ticktext if ">a</a>" in t)
        assert '" onclick="' not in label
        assert "&#34; onclick=&#34;" in label

    def test_no_dendrogram(self, clustered_df):
        hm = LinkedHeatmap(clustered_df, id_column="event").keep_row_order()
        fig = hm.to_figure()
        assert len(fig.data) == 1

    def test_color_scale_applied(self, result):
        cs = ColorScale("magma", vmin=0.0, vmax=20.0)
        fig = HTMLExporter.build_figure(result.long_table, result.segments, color_scale=cs)
        assert fig.data[0].zmin == 0.0
        assert fig.data[0].zmax == 20.0


class TestExport:
    def test_export_creates_file(self, tmp_path, result):
        out = tmp_path / "heatmap.html"
        HTMLExporter.export(out, result.long_table, result.segments)
        assert out.exists()
        assert out.stat().st_size > 0

    def test_html_structure(self, tmp_path, result):
        out = tmp_path / "heatmap.html"
        HTMLExporter.export(out, result.long_table, result.segments, title="Events <2024>")
        content = out.read_text(encoding="utf-8")
        assert "<!DOCTYPE html>" in content
        assert "<title>Events &lt;2024&gt;</title>" in content
        assert DIV_ID in content
        assert "plotly_click" in content

    def test_actions_embedded(self, tmp_path, result):
        out = tmp_path / "heatmap.html"
        HTMLExporter.export(out, result.long_table, result.segments)
        content = out.read_text(encoding="utf-8")
        assert "genome.ucsc.edu" in content
        assert "chr1:1-10" in content

    def test_inline_plotlyjs(self, tmp_path, result):
        out = tmp_path / "heatmap.html"
        HTMLExporter.export(out, result.long_table, result.segments, include_plotlyjs=True)
        content = out.read_text(encoding="utf-8")
        assert 'src="https://cdn.plot.ly' not in content

    def test_creates_parent_dirs(self, tmp_path, result):
        out = tmp_path / "nested" / "dir" / "heatmap.html"
        HTMLExporter.export(out, result.long_table, result.segments)
        assert out.exists()


class TestLinkedHeatmapSave:
    def test_save_html(self, tmp_path, events_df):
        out = tmp_path / "events.html"
        path = LinkedHeatmap(events_df).set_title("My Events").save_html(out)
        assert path == out
        assert "<title>My Events</title>" in out.read_text(encoding="utf-8")

    def test_render_shortcut(self, tmp_path, events_df):
        import linked_heatmap as lh

        out = tmp_path / "shortcut.html"
        lh.render(events_df, out, id_column="event")
        assert out.exists()
