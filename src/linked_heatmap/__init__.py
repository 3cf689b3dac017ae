"""linked-heatmap: clustered heatmaps whose rows link out to external views."""

from ._version import __version__
from .api import LinkedHeatmap
from .annotation import AnnotatedTable, Annotator, SplitRule, SplitSpec, annotate
from .config import PipelineConfig, load_config
from .core.errors import (
    HeatmapPipelineError,
    InsufficientDataError,
    InvalidInputError,
    MalformedDescriptorError,
    SchemaMismatchError,
)
from .core.table import ObservationTable, read_observation_table
from .layout.dendrogram_layout import DendrogramLayout, SegmentSet, map_dendrogram
from .transform.cluster import ClusterEngine, ClusterResult, cluster
from .transform.pipeline import PipelineResult, TransformPipeline
from .transform.reshape import LongTable, ReshapeEngine, to_long


def render(data, output, id_column=None, **links):
    """Cluster ``data`` and write a linked heatmap to ``output`` in one call.

    Parameters
    ----------
    data : pd.DataFrame or ObservationTable
        Observation table (one row per observation).
    output : str or Path
        HTML output path.
    id_column : str, optional
        Identifier column. Defaults to the first column.
    **links
        Passed to :meth:`LinkedHeatmap.set_links` (``descriptor_column``,
        ``split``, ``link_template``, ...). Without them the genome-browser
        defaults apply.
    """
    hm = LinkedHeatmap(data, id_column=id_column)
    if links:
        hm.set_links(**links)
    return hm.save_html(output)


__all__ = [
    "__version__",
    "LinkedHeatmap",
    "render",
    "AnnotatedTable",
    "Annotator",
    "annotate",
    "SplitRule",
    "SplitSpec",
    "PipelineConfig",
    "load_config",
    "HeatmapPipelineError",
    "InsufficientDataError",
    "InvalidInputError",
    "MalformedDescriptorError",
    "SchemaMismatchError",
    "ObservationTable",
    "read_observation_table",
    "DendrogramLayout",
    "SegmentSet",
    "map_dendrogram",
    "ClusterEngine",
    "ClusterResult",
    "cluster",
    "PipelineResult",
    "TransformPipeline",
    "LongTable",
    "ReshapeEngine",
    "to_long",
]
