"""Input validation with clear error messages for observation tables."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import pandas as pd

from .errors import InvalidInputError


def _preview(items: list, limit: int = 5) -> str:
    shown = f"{items[:limit]}"
    if len(items) > limit:
        shown += f" (and {len(items) - limit} more)"
    return shown


def validate_observation_frame(data: Any, id_column: str) -> pd.DataFrame:
    """Validate that data is a DataFrame with a unique identifier column.

    Returns the validated DataFrame (unchanged).
    """
    if not isinstance(data, pd.DataFrame):
        raise TypeError(
            f"Expected a pandas DataFrame, got {type(data).__name__}."
        )
    if data.columns.has_duplicates:
        dupes = data.columns[data.columns.duplicated()].unique().tolist()
        raise InvalidInputError(
            f"Column names must be unique. Found duplicates: {_preview(dupes)}",
            stage="load",
        )
    if id_column not in data.columns:
        raise InvalidInputError(
            f"Identifier column not found. Available: {list(data.columns)}",
            stage="load",
            column=id_column,
        )
    ids = data[id_column]
    if ids.isna().any():
        missing_at = ids.index[ids.isna()].tolist()
        raise InvalidInputError(
            f"Identifier is missing at positions {_preview(missing_at)}",
            stage="load",
            column=id_column,
        )
    if ids.duplicated().any():
        dupes = ids[ids.duplicated()].unique().tolist()
        raise InvalidInputError(
            f"Identifiers must be unique. Found duplicates: {_preview(dupes)}",
            stage="load",
            column=id_column,
        )
    return data


def validate_numeric_columns(
    data: pd.DataFrame,
    columns: Sequence[str],
    id_column: str,
    stage: str = "cluster",
) -> pd.DataFrame:
    """Check that ``columns`` exist, are numeric and hold only finite values.

    Returns the selected sub-frame as float64.
    """
    columns = list(columns)
    if not columns:
        raise InvalidInputError("At least one numeric column is required.", stage=stage)
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise InvalidInputError(
            f"Numeric columns not found: {_preview(missing)}. "
            f"Available: {list(data.columns)}",
            stage=stage,
        )
    for col in columns:
        series = data[col]
        if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
            raise InvalidInputError(
                f"Expected a numeric column, got dtype {series.dtype}",
                stage=stage,
                column=col,
            )

    values = data[columns].to_numpy(dtype=np.float64)
    bad_rows, bad_cols = np.nonzero(~np.isfinite(values))
    if len(bad_rows) > 0:
        r, c = int(bad_rows[0]), int(bad_cols[0])
        raise InvalidInputError(
            f"non-finite value {values[r, c]}"
            + (f" ({len(bad_rows) - 1} more non-finite cells)" if len(bad_rows) > 1 else ""),
            stage=stage,
            row=data[id_column].iloc[r],
            column=columns[c],
        )
    return data[columns].astype(np.float64)


def validate_colormap_name(name: str) -> str:
    """Validate that a matplotlib colormap name exists."""
    import matplotlib

    try:
        matplotlib.colormaps[name]
    except KeyError:
        raise ValueError(
            f"Unknown colormap '{name}'. Use a matplotlib colormap name "
            f"like 'viridis', 'plasma', 'RdBu_r', etc."
        ) from None
    return name
