"""Dendrogram layout: convert a merge tree to segments beside the heatmap."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.errors import InvalidInputError
from ..transform.cluster import ClusterResult

DEFAULT_PADDING = 0.1
DEFAULT_SHRINK_EXPONENT = 0.75


@dataclass(frozen=True)
class DendrogramSegment:
    """One merge edge, from a child node to its parent.

    Coordinates are already swapped: x is the (shrunk, offset) merge
    height and y is the leaf-axis position. The edge is drawn as an
    elbow: from the child ``(x, y)`` along the height axis to the
    corner ``(xend, y)``, then along the leaf axis to ``(xend, yend)``.
    """

    x: float
    y: float
    xend: float
    yend: float
    # Index of the merge this edge belongs to
    merge: int
    # Original IDs under the child node (for click-to-select)
    member_ids: tuple

    @property
    def corner(self) -> tuple[float, float]:
        return (self.xend, self.y)

    def to_lines(self) -> tuple[tuple[float, float, float, float], ...]:
        """The two straight pieces of the elbow as (x, y, xend, yend)."""
        cx, cy = self.corner
        return (
            (self.x, self.y, cx, cy),
            (cx, cy, self.xend, self.yend),
        )

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "xend": self.xend,
            "yend": self.yend,
            "merge": self.merge,
            "memberIds": list(self.member_ids),
        }


@dataclass(frozen=True)
class SegmentSet:
    """Dendrogram segments plus the transform that placed them."""

    segments: tuple[DendrogramSegment, ...]
    # x = shrink(height) * scale + x_offset
    scale: float
    x_offset: float
    # y of the first leaf; leaf k sits at leaf_offset + k
    leaf_offset: float
    shrink_exponent: float

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    def to_lines(self) -> list[tuple[float, float, float, float]]:
        """All elbows expanded to straight line pieces."""
        lines = []
        for seg in self.segments:
            lines.extend(seg.to_lines())
        return lines

    def to_dict(self) -> dict:
        return {
            "segments": [seg.to_dict() for seg in self.segments],
            "scale": self.scale,
            "xOffset": self.x_offset,
            "leafOffset": self.leaf_offset,
            "shrinkExponent": self.shrink_exponent,
        }


def shrink_height(height: float, exponent: float) -> float:
    """Compress merge heights: ``h / h**exponent``, with ``0 -> 0``."""
    if height <= 0.0:
        return 0.0
    return height / height ** exponent


class DendrogramLayout:
    """Converts a ClusterResult merge tree into heatmap-aligned segments.

    Leaves take one unit each on the leaf axis, in leaf order. Heights
    are shrunk, swapped onto the x axis and shifted past the last
    heatmap column so the dendrogram never overlaps the cell grid.
    """

    @staticmethod
    def compute(
        cluster_result: ClusterResult,
        axis_length: float,
        offset: float = 1.0,
        padding: float = DEFAULT_PADDING,
        shrink_exponent: float = DEFAULT_SHRINK_EXPONENT,
        scale: float = 1.0,
    ) -> SegmentSet:
        """Compute segment coordinates for a dendrogram.

        Parameters
        ----------
        cluster_result : ClusterResult
            From ClusterEngine.cluster().
        axis_length : float
            Number of measurement columns in the heatmap.
        offset : float
            Leaf-axis position of the first leaf.
        padding : float
            Gap between the last heatmap column and the dendrogram.
        shrink_exponent : float
            Height compression exponent in ``[0, 1)``; 0 keeps raw heights.
        scale : float
            Multiplier applied to shrunk heights.
        """
        if not 0.0 <= shrink_exponent < 1.0:
            raise InvalidInputError(
                f"shrink_exponent must be in [0, 1), got {shrink_exponent}",
                stage="dendrogram",
            )
        if padding < 0:
            raise InvalidInputError(
                f"padding must be non-negative, got {padding}", stage="dendrogram"
            )
        if axis_length < 0:
            raise InvalidInputError(
                f"axis_length must be non-negative, got {axis_length}",
                stage="dendrogram",
            )
        if scale <= 0:
            raise InvalidInputError(
                f"scale must be positive, got {scale}", stage="dendrogram"
            )

        x_offset = float(axis_length) + float(padding)
        n = cluster_result.n_leaves
        ids = cluster_result.ids

        # Leaf position on the leaf axis, in units
        position: dict[int, float] = {
            int(leaf): offset + rank
            for rank, leaf in enumerate(cluster_result.leaf_order)
        }
        height: dict[int, float] = {i: 0.0 for i in range(n)}
        members: dict[int, tuple] = {i: (i,) for i in range(n)}

        def to_x(h: float) -> float:
            return shrink_height(h, shrink_exponent) * scale + x_offset

        segments: list[DendrogramSegment] = []
        for i, merge in enumerate(cluster_result.merges):
            node = n + i
            position[node] = (position[merge.left] + position[merge.right]) / 2
            height[node] = merge.height
            members[node] = merge.members

            for child in (merge.left, merge.right):
                segments.append(DendrogramSegment(
                    x=to_x(height[child]),
                    y=position[child],
                    xend=to_x(merge.height),
                    yend=position[node],
                    merge=i,
                    member_ids=tuple(ids[m] for m in members[child]),
                ))

        return SegmentSet(
            segments=tuple(segments),
            scale=float(scale),
            x_offset=x_offset,
            leaf_offset=float(offset),
            shrink_exponent=float(shrink_exponent),
        )


def map_dendrogram(
    clustering_result: ClusterResult,
    axis_length: float,
    offset: float = 1.0,
    padding: float = DEFAULT_PADDING,
    shrink_exponent: float = DEFAULT_SHRINK_EXPONENT,
) -> SegmentSet:
    """Functional form of :meth:`DendrogramLayout.compute`."""
    return DendrogramLayout.compute(
        clustering_result,
        axis_length,
        offset=offset,
        padding=padding,
        shrink_exponent=shrink_exponent,
    )
