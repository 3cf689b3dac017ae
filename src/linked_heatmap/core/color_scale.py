"""ColorScale: matplotlib colormap -> plotly colorscale."""

from __future__ import annotations

import numpy as np

from .validation import validate_colormap_name


class ColorScale:
    """Maps a matplotlib colormap onto a plotly ``colorscale`` list.

    The colormap is sampled at ``n_stops`` evenly spaced positions and
    handed to plotly as ``[[position, "rgb(r, g, b)"], ...]``.
    """

    __slots__ = ("_cmap_name", "_vmin", "_vmax", "_stops")

    N_STOPS = 11

    def __init__(
        self,
        cmap_name: str = "viridis",
        vmin: float | None = None,
        vmax: float | None = None,
        n_stops: int = N_STOPS,
    ) -> None:
        validate_colormap_name(cmap_name)
        if n_stops < 2:
            raise ValueError(f"n_stops must be at least 2, got {n_stops}.")
        self._cmap_name = cmap_name
        self._vmin = None if vmin is None else float(vmin)
        self._vmax = None if vmax is None else float(vmax)
        self._stops = self._build_stops(n_stops)

    def _build_stops(self, n_stops: int) -> list[list]:
        import matplotlib

        cmap = matplotlib.colormaps[self._cmap_name]
        positions = np.linspace(0.0, 1.0, n_stops)
        rgba = (cmap(positions) * 255).round().astype(np.uint8)
        return [
            [float(pos), f"rgb({r}, {g}, {b})"]
            for pos, (r, g, b, _a) in zip(positions, rgba)
        ]

    @property
    def cmap_name(self) -> str:
        return self._cmap_name

    @property
    def vmin(self) -> float | None:
        return self._vmin

    @property
    def vmax(self) -> float | None:
        return self._vmax

    def to_plotly(self) -> list[list]:
        """Colorscale in plotly's ``[[pos, color], ...]`` form."""
        return [list(stop) for stop in self._stops]

    @classmethod
    def from_values(cls, cmap_name: str, values: np.ndarray) -> ColorScale:
        """Build a scale spanning the finite range of ``values``."""
        values = np.asarray(values, dtype=np.float64)
        finite = values[np.isfinite(values)]
        if len(finite) == 0:
            return cls(cmap_name, vmin=0.0, vmax=1.0)
        return cls(cmap_name, vmin=float(finite.min()), vmax=float(finite.max()))
