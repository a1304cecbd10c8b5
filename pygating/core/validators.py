from __future__ import annotations

from numbers import Integral, Real


def is_positive(value: float) -> None:
    """Check a number is a real, strictly positive value"""
    if not isinstance(value, Real) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"Value must be a positive number; found {value!r}")


def is_threshold(value: int) -> None:
    """Check a value is an integer ROI threshold between 0 and 100 percent"""
    if not isinstance(value, Integral) or isinstance(value, bool):
        raise ValueError(f"Threshold must be an integer percent; found {value!r}")
    if not 0 <= value <= 100:
        raise ValueError(f"Threshold must be between 0 and 100; found {value}")
