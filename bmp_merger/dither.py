"""Quantisation of grayscale grids to one bit per pixel."""

from __future__ import annotations

import numpy as np

from .grids import BitGrid, GrayscaleGrid

# (dx, dy, weight) for the neighbours not yet visited by a left-to-right scan.
FLOYD_STEINBERG = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)


def dither(grid: GrayscaleGrid, threshold: float = 128.0) -> BitGrid:
    """Floyd–Steinberg error diffusion to black and white.

    The scan is a single row-major pass and each pixel's error is pushed to its
    neighbours as soon as it is quantised, so output is reproducible bit for
    bit. Values exactly at ``threshold`` (on the 0-255 scale) become black.
    """

    working = grid.values * 255.0
    H, W = working.shape
    out = np.zeros((H, W), dtype=np.uint8)

    for y in range(H):
        for x in range(W):
            old = float(working[y, x])
            new = 255.0 if old > threshold else 0.0
            if new:
                out[y, x] = 1

            error = old - new
            for dx, dy, w in FLOYD_STEINBERG:
                nx, ny = x + dx, y + dy
                if 0 <= nx < W and ny < H:
                    working[ny, nx] += error * w

    return BitGrid(out)


def threshold(grid: GrayscaleGrid, level: float = 0.5) -> BitGrid:
    """Plain cut-off without diffusion: brighter than ``level`` is white."""

    return BitGrid(grid.values > level)
