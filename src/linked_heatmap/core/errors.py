"""Error taxonomy for the heatmap pipeline.

Every error names the stage that detected it and, where known, the
offending row id and column, e.g.::

    [cluster] row 'E2', column 't1': non-finite value nan
"""

from __future__ import annotations

from typing import Any


class HeatmapPipelineError(Exception):
    """Base class for all pipeline precondition failures."""

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        row: Any = None,
        column: Any = None,
    ) -> None:
        self.stage = stage
        self.row = row
        self.column = column
        self.detail = message
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        where = []
        if self.row is not None:
            where.append(f"row '{self.row}'")
        if self.column is not None:
            where.append(f"column '{self.column}'")
        prefix = f"[{self.stage}] " if self.stage else ""
        if where:
            return f"{prefix}{', '.join(where)}: {message}"
        return f"{prefix}{message}"


class InvalidInputError(HeatmapPipelineError, ValueError):
    """Malformed, missing or non-finite numeric data."""


class InsufficientDataError(HeatmapPipelineError, ValueError):
    """Too few rows to cluster."""


class MalformedDescriptorError(HeatmapPipelineError, ValueError):
    """A descriptor value does not split according to its SplitSpec."""


class SchemaMismatchError(HeatmapPipelineError, ValueError):
    """A reshape precondition does not hold."""
