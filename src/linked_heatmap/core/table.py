"""ObservationTable: validated, immutable wide-format observation container."""

from __future__ import annotations

import csv
import pathlib
from typing import Mapping, Sequence

import numpy as np
import pandas as pd

from ..utils.logging_utils import get_logger
from .errors import InvalidInputError
from .validation import validate_numeric_columns, validate_observation_frame

logger = get_logger(__name__)


class ObservationTable:
    """Immutable table with one row per observation.

    Holds a unique identifier column, any number of descriptor columns
    and the numeric measurement columns. Row order is significant and
    every operation returns a new table instead of mutating this one.
    """

    __slots__ = ("_df", "_id_column")

    def __init__(self, df: pd.DataFrame, id_column: str | None = None) -> None:
        if isinstance(df, pd.DataFrame) and id_column is None and len(df.columns) > 0:
            id_column = df.columns[0]
        df = validate_observation_frame(df, id_column)
        self._df: pd.DataFrame = df.reset_index(drop=True).copy()
        self._id_column: str = id_column

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        id_column: str | None = None,
    ) -> ObservationTable:
        """Wrap an in-memory DataFrame. ``id_column`` defaults to the first column."""
        return cls(df, id_column=id_column)

    @classmethod
    def _from_validated(cls, df: pd.DataFrame, id_column: str) -> ObservationTable:
        """Create a table from a frame derived from an already valid table."""
        obj = object.__new__(cls)
        obj._df = df.reset_index(drop=True)
        obj._id_column = id_column
        return obj

    @property
    def df(self) -> pd.DataFrame:
        """A copy of the underlying frame."""
        return self._df.copy()

    @property
    def id_column(self) -> str:
        return self._id_column

    @property
    def ids(self) -> np.ndarray:
        """Observation IDs in row order, as an object array."""
        return np.array(self._df[self._id_column], dtype=object)

    @property
    def columns(self) -> list[str]:
        return list(self._df.columns)

    @property
    def n_rows(self) -> int:
        return len(self._df)

    def __len__(self) -> int:
        return len(self._df)

    def __repr__(self) -> str:
        return (
            f"ObservationTable(n_rows={self.n_rows}, id_column={self._id_column!r}, "
            f"columns={self.columns})"
        )

    def numeric_columns(self) -> list[str]:
        """Numeric measurement columns (every numeric column but the ID)."""
        return [
            c for c in self._df.columns
            if c != self._id_column
            and pd.api.types.is_numeric_dtype(self._df[c])
            and not pd.api.types.is_bool_dtype(self._df[c])
        ]

    def column(self, name: str) -> pd.Series:
        if name not in self._df.columns:
            raise KeyError(
                f"Column '{name}' not found in observation table. "
                f"Available: {self.columns}"
            )
        return self._df[name].copy()

    def numeric_values(self, columns: Sequence[str], stage: str = "cluster") -> np.ndarray:
        """Return the (n_rows, len(columns)) float64 matrix for ``columns``.

        Raises InvalidInputError for missing, non-numeric or non-finite data.
        """
        sub = validate_numeric_columns(self._df, columns, self._id_column, stage=stage)
        return np.ascontiguousarray(sub.to_numpy(), dtype=np.float64)

    def take(self, positions: Sequence[int]) -> ObservationTable:
        """Return a new table whose rows follow ``positions``."""
        positions = np.asarray(positions, dtype=np.intp)
        if sorted(positions.tolist()) != list(range(self.n_rows)):
            raise ValueError(
                f"Row order must be a permutation of range({self.n_rows})."
            )
        return ObservationTable._from_validated(
            self._df.iloc[positions].copy(), self._id_column
        )

    def with_columns(self, columns: Mapping[str, Sequence]) -> ObservationTable:
        """Return a new table with ``columns`` added (or replaced)."""
        df = self._df.copy()
        for name, values in columns.items():
            if name == self._id_column:
                raise ValueError(f"Cannot replace the identifier column '{name}'.")
            if len(values) != len(df):
                raise ValueError(
                    f"Column '{name}' has {len(values)} values, "
                    f"expected {len(df)}."
                )
            df[name] = list(values)
        return ObservationTable._from_validated(df, self._id_column)

    def drop_columns(self, names: Sequence[str]) -> ObservationTable:
        if self._id_column in names:
            raise ValueError(f"Cannot drop the identifier column '{self._id_column}'.")
        return ObservationTable._from_validated(
            self._df.drop(columns=list(names)), self._id_column
        )


def read_observation_table(
    path: str | pathlib.Path,
    id_column: str | None = None,
    sep: str = "\t",
    quotechar: str | None = None,
    numeric_columns: Sequence[str] | None = None,
) -> ObservationTable:
    """Read a delimited text table with a header row.

    Parameters
    ----------
    path : str or Path
        Input file.
    id_column : str, optional
        Identifier column. Defaults to the first column.
    sep : str
        Field delimiter (tab by default).
    quotechar : str, optional
        Single quote character. ``None`` disables quoting entirely.
    numeric_columns : sequence of str, optional
        Measurement columns that must be present, numeric and finite.
        Checked at load time so bad input fails before clustering.
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input table not found: {path}")

    if quotechar is None:
        df = pd.read_csv(path, sep=sep, quoting=csv.QUOTE_NONE)
    else:
        if len(quotechar) != 1:
            raise InvalidInputError(
                f"quotechar must be a single character, got {quotechar!r}",
                stage="load",
            )
        df = pd.read_csv(path, sep=sep, quotechar=quotechar)

    if df.empty:
        raise InvalidInputError(f"No rows read from {path}", stage="load")

    table = ObservationTable(df, id_column=id_column)
    if numeric_columns is not None:
        validate_numeric_columns(
            table.df, numeric_columns, table.id_column, stage="load"
        )
    logger.info(
        "Loaded %d observations x %d columns from %s (id column '%s')",
        table.n_rows, len(table.columns), path, table.id_column,
    )
    return table
