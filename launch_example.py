"""Build the example linked heatmap from the synthetic event table.

Run ``python data/generate_event_data.py`` first to create the table.
"""

import logging

import linked_heatmap as lh
from linked_heatmap.utils.logging_utils import setup_logging

setup_logging(logging.INFO)

config = lh.load_config("data/example_config.yaml")
table = lh.read_observation_table("data/example_events.tsv", id_column="event")

print(f"Events: {table.n_rows} rows, timepoints: {table.numeric_columns()}")

hm = lh.LinkedHeatmap(table, config=config)
out = hm.save_html()
print(f"Wrote {out}")
