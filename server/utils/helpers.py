# server/utils/helpers.py
"""Utility functions and helpers."""

import math

from models.entities import Vector3


def calculate_distance(a: Vector3, b: Vector3) -> float:
    """Straight-line distance between two points."""
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)


def horizontal_distance(a: Vector3, b: Vector3) -> float:
    """Distance between two points projected on the x/z plane."""
    return math.hypot(a.x - b.x, a.z - b.z)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(value, high))


def band_base_height(y: float, chunk_height: int) -> int:
    """Base height of the chunk band containing y."""
    return math.floor(y / chunk_height) * chunk_height
