"""
Configuration & Numerical Constants
===================================
This module serves as the central registry for the tolerances, caps and
default parameters of the treemap layout.

Why is this file needed?
------------------------
1. Abstraction: The epsilon policies of the hull, the clipper and the solver
   are numerically coupled; keeping them in one place avoids magic numbers
   scattered throughout the algorithms.
2. Caps: Every hard bound that protects a loop (iterations, retries, workers)
   is surfaced here and in `TreemapSettings` instead of being buried in code.

Exports:
    TreemapSettings: Tunable knobs of a whole treemap computation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Geometry tolerances
HULL_EPS: float = 1e-7  # signed distance beyond which a point is outside a hull face
CLIP_EPS: float = 1e-7  # orientation tolerance of the convex clipper
POLYGON_EPS: float = 1e-7  # point-in-polygon tolerance
NEARLY_ZERO: float = 1e-10  # weight of the bounding dummy sites

# Weight adaptation (empirically tuned, keep in sync with each other)
WEIGHT_FLOOR: float = 1.0
WEIGHT_PIVOT: float = 10.0  # below: square the correction, above: take its root
OSCILLATION_HIGH: float = 1.1
OSCILLATION_LOW: float = 0.9

# Initial placement: a group is split off once it exceeds this share of the largest attribute
GROUP_SPLIT_RATIO: float = 0.3

# Defaults
DEFAULT_ERROR_THRESHOLD: float = 1e-2
DEFAULT_MAX_ITERATIONS: int = 500
MAX_SOLVER_RETRIES: int = 20
MAX_WORKERS: int = 3

# Larger bounding-box side of the frame the single-layer solver iterates in
REFERENCE_EXTENT: float = 1000.0


@dataclass
class TreemapSettings:
    """
    Tunable parameters of a treemap computation.

    Attributes:
        error_threshold: Maximum relative area error a layer must reach to count as converged.
        max_iterations: Iteration cap of a single-layer solve.
        max_retries: Number of fresh solves attempted for a layer before the last one is kept.
        max_workers: Number of worker threads laying out independent subtrees.
        reference_extent: Size of the solver frame, None to iterate in caller units.
    """
    error_threshold: float = DEFAULT_ERROR_THRESHOLD
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    max_retries: int = MAX_SOLVER_RETRIES
    max_workers: int = MAX_WORKERS
    reference_extent: Optional[float] = REFERENCE_EXTENT

    def validate(self) -> None:
        """Raise ValueError if any parameter is out of range."""
        if self.error_threshold <= 0.0:
            raise ValueError(f"error_threshold must be positive, got {self.error_threshold}.")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}.")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}.")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}.")
        if self.reference_extent is not None and self.reference_extent <= 0.0:
            raise ValueError(f"reference_extent must be positive or None, got {self.reference_extent}.")
