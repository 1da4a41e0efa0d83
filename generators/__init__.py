"""Simulated input data for the Day Planner."""

from .data_factory import DayGenerator

__all__ = ["DayGenerator"]
