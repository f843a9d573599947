"""
Shmup - Utilities Module

Helper functions shared by the simulation subsystems.
"""

import random
import warnings
from typing import Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def warn(message: str, *, stacklevel: int = 3):
    warnings.warn("\u001B[33m\n" + message + "\u001B[0m", stacklevel=stacklevel)

def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))

def scaled(delta_ms: float, frame_ms: float) -> float:
    """Fraction of a baseline frame covered by delta_ms"""
    return delta_ms / frame_ms


def weighted_choice(table: Sequence[tuple[float, T]], rng: random.Random) -> T:
    """
    Sample one variant from a (weight, variant) table with a single draw.

    Weights need not sum to 1; the draw is scaled by their total.
    """
    if len(table) == 0:
        raise ValueError("weighted_choice: table is empty")

    total = 0.0
    for weight, _ in table:
        if weight < 0:
            raise ValueError(f"weighted_choice: weights must be non-negative. Got: {weight}")
        total += weight
    if total <= 0:
        raise ValueError("weighted_choice: weights sum to zero")

    draw = rng.random() * total
    cumulative = 0.0
    for weight, variant in table:
        cumulative += weight
        if draw < cumulative:
            return variant
    return table[-1][1] # float rounding at the top end


def angle_fan(start: float, end: float, num_points: int, closed_circle: bool = False) -> np.ndarray:
    """
    Evenly spaced angles (radians) from start to end.

    closed_circle: the arc wraps around, so the end angle is not repeated.
    """
    if num_points < 1:
        raise ValueError(f"angle_fan: num_points must be at least 1. Got: {num_points}")
    if num_points == 1:
        return np.array([start], dtype=float)

    if closed_circle:
        spacing = (end - start) / num_points
    else:
        spacing = (end - start) / (num_points - 1)
    return start + spacing * np.arange(num_points, dtype=float)
