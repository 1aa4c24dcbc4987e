"""Bounded-rate RPLidar scan logger."""

__version__ = "0.3.0"
