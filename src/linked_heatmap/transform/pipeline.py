"""TransformPipeline: orchestrates cluster -> annotate -> reshape -> dendrogram."""

from __future__ import annotations

from dataclasses import dataclass

from ..annotation.annotator import AnnotatedTable, Annotator
from ..annotation.descriptor import SplitSpec
from ..config import PipelineConfig
from ..core.errors import InvalidInputError
from ..core.table import ObservationTable, read_observation_table
from ..layout.dendrogram_layout import DendrogramLayout, SegmentSet
from ..utils.logging_utils import get_logger
from .cluster import ClusterEngine, ClusterResult
from .reshape import LongTable, ReshapeEngine

logger = get_logger(__name__)


@dataclass
class PipelineResult:
    """Everything the renderer needs, plus the intermediate structures."""

    # Annotated table in display (clustered) order
    annotated: AnnotatedTable
    cluster_result: ClusterResult | None
    long_table: LongTable
    segments: SegmentSet
    numeric_columns: list[str]


class TransformPipeline:
    """Runs the row-clustering and link-annotation chain for one table.

    Applies the stages in order:
    1. Cluster (hierarchical clustering of the rows, optional)
    2. Reorder (rows follow the leaf order)
    3. Annotate (descriptor components, action and tooltip strings)
    4. Reshape (wide -> long, explicit category order)
    5. Dendrogram (segments beside the heatmap; empty without clustering)

    Each stage validates its own preconditions before doing any work.
    """

    @staticmethod
    def run(
        table: ObservationTable,
        config: PipelineConfig | None = None,
    ) -> PipelineResult:
        config = config or PipelineConfig()

        numeric_columns = list(config.cluster.numeric_columns or table.numeric_columns())
        if not numeric_columns:
            raise InvalidInputError(
                "No numeric measurement columns found.", stage="cluster"
            )
        category_order = list(config.reshape.category_order or numeric_columns)

        # --- Step 1 + 2: Cluster and reorder ---
        cluster_result: ClusterResult | None = None
        ordered = table
        if config.cluster.enabled:
            cluster_result = ClusterEngine.cluster(
                table,
                numeric_columns,
                metric=config.cluster.metric,
                method=config.cluster.method,
                optimal_ordering=config.cluster.optimal_ordering,
            )
            ordered = cluster_result.reorder(table)
        else:
            logger.info("Clustering disabled; keeping input row order")

        # --- Step 3: Annotate ---
        ann = config.annotate
        annotated = Annotator.annotate(
            ordered,
            ann.descriptor_column,
            SplitSpec.from_config(ann.split),
            ann.link_template,
            tooltip_template=ann.tooltip_template,
            action_column=ann.action_column,
            tooltip_column=ann.tooltip_column,
            escape=ann.escape,
        )

        # --- Step 4: Reshape ---
        id_columns = [annotated.id_column] + [
            c for c in annotated.table.columns
            if c != annotated.id_column and c not in category_order
        ]
        long_table = ReshapeEngine.to_long(
            annotated,
            id_columns=id_columns,
            value_columns=category_order,
            category_order=category_order,
            category_name=config.reshape.category_name,
            value_name=config.reshape.value_name,
        )

        # --- Step 5: Dendrogram ---
        dendro = config.dendrogram
        if cluster_result is not None:
            segments = DendrogramLayout.compute(
                cluster_result,
                axis_length=len(category_order),
                offset=dendro.offset,
                padding=dendro.padding,
                shrink_exponent=dendro.shrink_exponent,
                scale=dendro.scale,
            )
        else:
            segments = SegmentSet(
                segments=(),
                scale=dendro.scale,
                x_offset=len(category_order) + dendro.padding,
                leaf_offset=dendro.offset,
                shrink_exponent=dendro.shrink_exponent,
            )

        return PipelineResult(
            annotated=annotated,
            cluster_result=cluster_result,
            long_table=long_table,
            segments=segments,
            numeric_columns=numeric_columns,
        )

    @staticmethod
    def run_from_config(config: PipelineConfig) -> PipelineResult:
        """Load ``config.input.path`` and run the pipeline on it."""
        if not config.input.path:
            raise ValueError("No input path configured (input.path).")
        table = read_observation_table(
            config.input.path,
            id_column=config.input.id_column,
            sep=config.input.sep,
            quotechar=config.input.quotechar,
        )
        return TransformPipeline.run(table, config)
