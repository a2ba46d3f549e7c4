"""Configuration for merging and encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from .bmp import DEFAULT_PIXELS_PER_METER

POLICIES = ("overlay", "exact", "side-by-side")


@dataclass(frozen=True)
class MergeParameters:
    """Settings shared by the pipeline and the command line.

    Thresholds are expressed on the scale the quantiser works in: 0-255 for
    error diffusion, 0-1 brightness for the side-by-side cut-off.
    """

    policy: str = "overlay"
    dither_threshold: float = 128.0
    side_by_side_threshold: float = 0.5
    pixels_per_meter: int = DEFAULT_PIXELS_PER_METER
    verify_output: bool = False

    def validate(self) -> "MergeParameters":
        if self.policy not in POLICIES:
            raise ValueError(f"Unknown policy {self.policy!r}, expected one of {POLICIES}")
        if not 0.0 <= self.dither_threshold <= 255.0:
            raise ValueError("dither_threshold must lie within [0, 255]")
        if not 0.0 <= self.side_by_side_threshold <= 1.0:
            raise ValueError("side_by_side_threshold must lie within [0, 1]")
        if self.pixels_per_meter < 0:
            raise ValueError("pixels_per_meter must not be negative")
        return self


DEFAULT_PARAMS = MergeParameters()


def load_parameters(path: Optional[Path]) -> MergeParameters:
    """Read parameter overrides from a JSON file, or return the defaults."""

    if path is None:
        return DEFAULT_PARAMS
    with Path(path).open("r", encoding="utf-8") as fp:
        data = json.load(fp)
    if not isinstance(data, dict):
        raise ValueError(f"Parameter file {path} must contain a JSON object")
    unknown = sorted(set(data) - {f.name for f in fields(MergeParameters)})
    if unknown:
        raise ValueError(f"Unknown parameter(s) in {path}: {', '.join(unknown)}")
    return MergeParameters(**data).validate()
