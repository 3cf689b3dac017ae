"""ReshapeEngine: wide observation table -> long (id, category, value) table."""

from __future__ import annotations

from typing import Any, Sequence, Union

import pandas as pd

from ..annotation.annotator import AnnotatedTable
from ..core.errors import SchemaMismatchError
from ..core.table import ObservationTable
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)

TableLike = Union[ObservationTable, AnnotatedTable, pd.DataFrame]


class LongTable:
    """Immutable long-format table: one row per (observation, category).

    The category column is an ordered ``pandas.Categorical`` whose
    categories are the caller's ordering, and the observation order of
    the source table is kept as ``row_order``. Consumers read both from
    here instead of re-sorting.
    """

    __slots__ = ("_df", "_id_columns", "_category_name", "_value_name", "_row_order")

    def __init__(
        self,
        df: pd.DataFrame,
        id_columns: Sequence[str],
        category_name: str,
        value_name: str,
        row_order: Sequence[Any],
    ) -> None:
        self._df = df
        self._id_columns = tuple(id_columns)
        self._category_name = category_name
        self._value_name = value_name
        self._row_order = tuple(row_order)

    @property
    def df(self) -> pd.DataFrame:
        """A copy of the underlying long frame."""
        return self._df.copy()

    @property
    def id_columns(self) -> tuple[str, ...]:
        return self._id_columns

    @property
    def id_column(self) -> str:
        """The observation identifier (first id column)."""
        return self._id_columns[0]

    @property
    def category_name(self) -> str:
        return self._category_name

    @property
    def value_name(self) -> str:
        return self._value_name

    @property
    def categories(self) -> tuple:
        """Category identifiers in display order."""
        return tuple(self._df[self._category_name].cat.categories)

    @property
    def row_order(self) -> tuple:
        """Observation IDs in display order."""
        return self._row_order

    def __len__(self) -> int:
        return len(self._df)

    def __repr__(self) -> str:
        return (
            f"LongTable(n_rows={len(self)}, observations={len(self._row_order)}, "
            f"categories={list(self.categories)})"
        )

    def column(self, name: str) -> pd.Series:
        if name not in self._df.columns:
            raise KeyError(
                f"Column '{name}' not found in long table. "
                f"Available: {list(self._df.columns)}"
            )
        return self._df[name].copy()

    def to_matrix(self, values: str | None = None) -> pd.DataFrame:
        """Pivot back to a (row_order x categories) frame of ``values``."""
        values = values or self._value_name
        wide = self._df.pivot(
            index=self.id_column, columns=self._category_name, values=values
        )
        return wide.reindex(index=list(self._row_order), columns=list(self.categories))

    def per_observation(self, column: str) -> list:
        """One value of an observation-level column per ID, in row order."""
        first = self._df.drop_duplicates(subset=[self.id_column]).set_index(self.id_column)
        if column not in first.columns:
            raise KeyError(
                f"Column '{column}' not found in long table. "
                f"Available: {list(self._df.columns)}"
            )
        return first.loc[list(self._row_order), column].tolist()


def _dtype_kind(series: pd.Series) -> str:
    if pd.api.types.is_bool_dtype(series):
        return "boolean"
    if pd.api.types.is_numeric_dtype(series):
        return "numeric"
    if pd.api.types.is_datetime64_any_dtype(series):
        return "datetime"
    return "text"


def _as_frame(table: TableLike) -> pd.DataFrame:
    if isinstance(table, AnnotatedTable):
        return table.table.df
    if isinstance(table, ObservationTable):
        return table.df
    if isinstance(table, pd.DataFrame):
        return table.reset_index(drop=True)
    raise TypeError(
        f"Expected an ObservationTable, AnnotatedTable or DataFrame, "
        f"got {type(table).__name__}."
    )


class ReshapeEngine:
    """Pivots measurement columns into (category, value) pairs.

    Rows are emitted category block by category block, following the
    caller's ``category_order``; inside each block rows keep the source
    table order. Reordering the source (e.g. by clustering) therefore
    carries straight through to the long table.
    """

    @staticmethod
    def to_long(
        table: TableLike,
        id_columns: Sequence[str],
        value_columns: Sequence[str],
        category_order: Sequence[Any],
        category_name: str = "category",
        value_name: str = "value",
    ) -> LongTable:
        """Pivot ``value_columns`` into ``category_name`` / ``value_name``.

        Parameters
        ----------
        table : ObservationTable, AnnotatedTable or DataFrame
            Wide source table.
        id_columns : sequence of str
            Columns replicated onto every emitted row. The first one
            identifies the observation.
        value_columns : sequence
            One column per measurement category.
        category_order : sequence
            Total order over ``value_columns`` used for the output.
        category_name, value_name : str
            Names of the two new columns.

        Returns
        -------
        LongTable with ``rows * len(value_columns)`` rows.
        """
        df = _as_frame(table)
        id_columns = list(id_columns)
        value_columns = list(value_columns)
        category_order = list(category_order)

        if not id_columns:
            raise SchemaMismatchError("At least one id column is required.", stage="reshape")
        if not value_columns:
            raise SchemaMismatchError("At least one value column is required.", stage="reshape")

        missing = [c for c in id_columns + value_columns if c not in df.columns]
        if missing:
            raise SchemaMismatchError(
                f"Columns not found: {missing}. Available: {list(df.columns)}",
                stage="reshape",
            )
        overlap = set(id_columns) & set(value_columns)
        if overlap:
            raise SchemaMismatchError(
                f"Columns are both id and value columns: {sorted(map(str, overlap))}",
                stage="reshape",
            )
        if len(set(value_columns)) != len(value_columns):
            raise SchemaMismatchError("value_columns contains duplicates.", stage="reshape")
        for name in (category_name, value_name):
            if name in id_columns:
                raise SchemaMismatchError(
                    f"Output column '{name}' collides with an id column.",
                    stage="reshape",
                )
        if category_name == value_name:
            raise SchemaMismatchError(
                "category_name and value_name must differ.", stage="reshape"
            )

        if len(set(category_order)) != len(category_order):
            dupes = sorted({str(c) for c in category_order if category_order.count(c) > 1})
            raise SchemaMismatchError(
                f"category_order contains duplicates: {dupes}", stage="reshape"
            )
        if set(category_order) != set(value_columns):
            raise SchemaMismatchError(
                f"category_order {category_order} must list exactly the "
                f"value columns {value_columns}",
                stage="reshape",
            )

        kinds = {c: _dtype_kind(df[c]) for c in value_columns}
        if len(set(kinds.values())) > 1:
            raise SchemaMismatchError(
                f"Value columns have mixed types: {kinds}", stage="reshape"
            )

        # The first id column identifies the observation in every LongTable view
        dupes = df.duplicated(subset=id_columns[0], keep=False)
        if dupes.any():
            first = df.loc[dupes, id_columns[0]].iloc[0]
            raise SchemaMismatchError(
                f"{int(dupes.sum())} rows share the same id in column "
                f"'{id_columns[0]}'; (id, category) pairs would be ambiguous",
                stage="reshape",
                row=first,
            )

        # Partition by category, then concatenate in the requested sequence
        base = df[id_columns].reset_index(drop=True)
        blocks = []
        for category in category_order:
            block = base.copy()
            block[category_name] = [category] * len(block)
            block[value_name] = df[category].to_numpy()
            blocks.append(block)
        long_df = pd.concat(blocks, ignore_index=True)
        long_df[category_name] = pd.Categorical(
            long_df[category_name], categories=category_order, ordered=True
        )

        logger.info(
            "Reshaped %d rows x %d categories into %d long rows",
            len(df), len(category_order), len(long_df),
        )
        return LongTable(
            long_df,
            id_columns=id_columns,
            category_name=category_name,
            value_name=value_name,
            row_order=df[id_columns[0]].tolist(),
        )


def to_long(
    table: TableLike,
    id_columns: Sequence[str],
    value_columns: Sequence[str],
    category_order: Sequence[Any],
) -> LongTable:
    """Functional form of :meth:`ReshapeEngine.to_long`."""
    return ReshapeEngine.to_long(table, id_columns, value_columns, category_order)
