"""Tests for ObservationTable, validation and the table loader."""

import numpy as np
import pandas as pd
import pytest

from linked_heatmap.core.errors import InvalidInputError
from linked_heatmap.core.table import ObservationTable, read_observation_table


class TestObservationTableInit:
    def test_basic(self, events_df):
        table = ObservationTable(events_df, id_column="event")
        assert table.n_rows == 3
        assert len(table) == 3
        assert table.id_column == "event"
        assert list(table.ids) == ["E1", "E2", "E3"]

    def test_id_column_defaults_to_first(self, events_df):
        table = ObservationTable.from_dataframe(events_df)
        assert table.id_column == "event"

    def test_numeric_columns(self, events_table):
        assert events_table.numeric_columns() == ["t0", "t1"]

    def test_not_a_dataframe_raises(self):
        with pytest.raises(TypeError, match="Expected a pandas DataFrame"):
            ObservationTable([[1, 2]], id_column="a")

    def test_missing_id_column_raises(self, events_df):
        with pytest.raises(InvalidInputError, match="Identifier column not found"):
            ObservationTable(events_df, id_column="nope")

    def test_duplicate_ids_raise(self, events_df):
        events_df.loc[2, "event"] = "E1"
        with pytest.raises(InvalidInputError, match="must be unique"):
            ObservationTable(events_df, id_column="event")

    def test_missing_id_raises(self, events_df):
        events_df["event"] = ["E1", None, "E3"]
        with pytest.raises(InvalidInputError, match="missing"):
            ObservationTable(events_df, id_column="event")

    def test_source_frame_not_shared(self, events_df):
        table = ObservationTable(events_df, id_column="event")
        events_df.loc[0, "t0"] = 99.0
        assert table.column("t0").iloc[0] == 1.0

    def test_df_is_a_copy(self, events_table):
        df = events_table.df
        df.loc[0, "t0"] = 99.0
        assert events_table.column("t0").iloc[0] == 1.0


class TestObservationTableOps:
    def test_take(self, events_table):
        reordered = events_table.take([2, 0, 1])
        assert list(reordered.ids) == ["E3", "E1", "E2"]
        # Original untouched
        assert list(events_table.ids) == ["E1", "E2", "E3"]

    def test_take_requires_permutation(self, events_table):
        with pytest.raises(ValueError, match="permutation"):
            events_table.take([0, 0, 1])

    def test_with_columns(self, events_table):
        out = events_table.with_columns({"flag": ["x", "y", "z"]})
        assert out.column("flag").tolist() == ["x", "y", "z"]
        assert "flag" not in events_table.columns

    def test_with_columns_length_mismatch(self, events_table):
        with pytest.raises(ValueError, match="expected 3"):
            events_table.with_columns({"flag": ["x"]})

    def test_cannot_replace_id(self, events_table):
        with pytest.raises(ValueError, match="identifier"):
            events_table.with_columns({"event": ["a", "b", "c"]})

    def test_unknown_column_raises(self, events_table):
        with pytest.raises(KeyError, match="not found"):
            events_table.column("missing")


class TestNumericValidation:
    def test_numeric_values(self, events_table):
        values = events_table.numeric_values(["t0", "t1"])
        assert values.dtype == np.float64
        np.testing.assert_array_equal(values, [[1, 2], [3, 4], [5, 6]])

    def test_non_finite_names_row_and_column(self, events_df):
        events_df.loc[1, "t1"] = np.inf
        table = ObservationTable(events_df, id_column="event")
        with pytest.raises(InvalidInputError) as exc:
            table.numeric_values(["t0", "t1"])
        assert exc.value.row == "E2"
        assert exc.value.column == "t1"
        assert "[cluster]" in str(exc.value)

    def test_nan_rejected(self, events_df):
        events_df.loc[0, "t0"] = np.nan
        table = ObservationTable(events_df, id_column="event")
        with pytest.raises(InvalidInputError, match="non-finite"):
            table.numeric_values(["t0", "t1"])

    def test_non_numeric_column_rejected(self, events_table):
        with pytest.raises(InvalidInputError, match="numeric column"):
            events_table.numeric_values(["position"])

    def test_empty_column_list_rejected(self, events_table):
        with pytest.raises(InvalidInputError, match="At least one"):
            events_table.numeric_values([])

    def test_missing_column_rejected(self, events_table):
        with pytest.raises(InvalidInputError, match="not found"):
            events_table.numeric_values(["t0", "t9"])


class TestReadObservationTable:
    def test_read_tsv(self, events_tsv):
        table = read_observation_table(events_tsv, id_column="event")
        assert list(table.ids) == ["E1", "E2", "E3"]
        assert table.numeric_columns() == ["t0", "t1"]

    def test_quoting_disabled_by_default(self, tmp_path):
        path = tmp_path / "quoted.tsv"
        path.write_text('id\tlabel\tt0\nr1\t"a"\t1\nr2\t"b\t2\n', encoding="utf-8")
        table = read_observation_table(path)
        # Quotes are kept verbatim, including an unbalanced one
        assert table.column("label").tolist() == ['"a"', '"b']

    def test_quotechar(self, tmp_path):
        path = tmp_path / "quoted.csv"
        path.write_text('id,label,t0\nr1,"a,b",1\nr2,c,2\n', encoding="utf-8")
        table = read_observation_table(path, sep=",", quotechar='"')
        assert table.column("label").tolist() == ["a,b", "c"]

    def test_bad_quotechar(self, events_tsv):
        with pytest.raises(InvalidInputError, match="single character"):
            read_observation_table(events_tsv, quotechar="''")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_observation_table(tmp_path / "nope.tsv")

    def test_numeric_columns_checked_on_load(self, events_tsv):
        table = read_observation_table(events_tsv, numeric_columns=["t0", "t1"])
        assert table.n_rows == 3

    def test_non_numeric_column_rejected_on_load(self, events_tsv):
        with pytest.raises(InvalidInputError, match="numeric") as exc:
            read_observation_table(events_tsv, numeric_columns=["t0", "position"])
        assert exc.value.stage == "load"
        assert exc.value.column == "position"

    def test_missing_numeric_column_rejected_on_load(self, events_tsv):
        with pytest.raises(InvalidInputError, match="not found"):
            read_observation_table(events_tsv, numeric_columns=["t9"])

    def test_header_only_file(self, tmp_path):
        path = tmp_path / "empty.tsv"
        path.write_text("id\tt0\n", encoding="utf-8")
        with pytest.raises(InvalidInputError, match="No rows"):
            read_observation_table(path)
