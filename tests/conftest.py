"""Shared test fixtures for linked-heatmap."""

import numpy as np
import pandas as pd
import pytest

from linked_heatmap.annotation.descriptor import SplitRule, SplitSpec
from linked_heatmap.core.table import ObservationTable


@pytest.fixture
def events_df():
    """3-event table: id, composite position, two timepoints."""
    return pd.DataFrame({
        "event": ["E1", "E2", "E3"],
        "position": ["chr1:100-200", "chr2:300-400", "chr1:500-600"],
        "t0": [1.0, 3.0, 5.0],
        "t1": [2.0, 4.0, 6.0],
    })


@pytest.fixture
def events_table(events_df):
    return ObservationTable.from_dataframe(events_df, id_column="event")


@pytest.fixture
def position_spec():
    """chrom:start-end."""
    return SplitSpec([
        SplitRule(":", ("chrom", "rest")),
        SplitRule("-", ("start", "end")),
    ])


@pytest.fixture
def ucsc_template():
    return (
        "http://genome.ucsc.edu/cgi-bin/hgTracks?db=hg19"
        "&position={{ chrom }}:{{ start }}-{{ end }}"
    )


@pytest.fixture
def clustered_df():
    """Two well separated groups of events over four timepoints."""
    return pd.DataFrame({
        "event": ["a", "b", "c", "d"],
        "position": ["chr1:1-10", "chr2:20-30", "chr3:40-50", "chr4:60-70"],
        "t0": [0.0, 10.0, 0.1, 10.1],
        "t6": [0.0, 10.0, 0.1, 10.1],
        "t24": [1.0, 11.0, 1.1, 11.1],
        "t48": [1.0, 11.0, 1.1, 11.1],
    })


@pytest.fixture
def large_events_df():
    """40 events x 6 timepoints of random values."""
    rng = np.random.default_rng(42)
    n = 40
    data = rng.standard_normal((n, 6))
    df = pd.DataFrame(data, columns=[f"t{j}" for j in range(6)])
    df.insert(0, "position", [f"chr{i % 22 + 1}:{i * 1000}-{i * 1000 + 500}" for i in range(n)])
    df.insert(0, "event", [f"event_{i:03d}" for i in range(n)])
    return df


@pytest.fixture
def events_tsv(tmp_path, events_df):
    path = tmp_path / "events.tsv"
    events_df.to_csv(path, sep="\t", index=False)
    return path
