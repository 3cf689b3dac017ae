"""Generate a synthetic splicing-event time course for the example heatmap.

Writes ``example_events.tsv``: one row per event with an ``event`` id, a
``position`` descriptor (``chrom:start-end``) and PSI values at six
timepoints. Events are drawn from a handful of temporal profiles so the
clustering has structure to find.

Needs only numpy and pandas, not linked-heatmap itself.
"""

import numpy as np
import pandas as pd
from pathlib import Path

SEED = 7
N_EVENTS = 60
TIMEPOINTS = ["t0", "t2", "t6", "t12", "t24", "t48"]

# Mean PSI per timepoint for each temporal profile
PROFILES = {
    "rising": [0.10, 0.15, 0.30, 0.55, 0.75, 0.85],
    "falling": [0.85, 0.80, 0.60, 0.40, 0.20, 0.15],
    "transient": [0.20, 0.50, 0.80, 0.60, 0.30, 0.20],
    "flat_high": [0.80, 0.80, 0.82, 0.79, 0.81, 0.80],
    "flat_low": [0.10, 0.12, 0.09, 0.11, 0.10, 0.10],
}
NOISE_STD = 0.05
CHROMS = [f"chr{i}" for i in range(1, 23)] + ["chrX"]


def generate(rng: np.random.Generator) -> pd.DataFrame:
    names = list(PROFILES)
    rows = []
    for i in range(N_EVENTS):
        profile = PROFILES[names[rng.integers(len(names))]]
        psi = np.clip(np.array(profile) + rng.normal(0, NOISE_STD, len(profile)), 0.0, 1.0)
        chrom = CHROMS[rng.integers(len(CHROMS))]
        start = int(rng.integers(10_000, 200_000_000))
        end = start + int(rng.integers(50, 5_000))
        rows.append({
            "event": f"SE_{i:04d}",
            "position": f"{chrom}:{start}-{end}",
            **{t: round(float(v), 4) for t, v in zip(TIMEPOINTS, psi)},
        })
    return pd.DataFrame(rows)


def main() -> None:
    out = Path(__file__).parent / "example_events.tsv"
    df = generate(np.random.default_rng(SEED))
    df.to_csv(out, sep="\t", index=False)
    print(f"Wrote {len(df)} events x {len(TIMEPOINTS)} timepoints to {out}")


if __name__ == "__main__":
    main()
