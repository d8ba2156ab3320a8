"""CLI helpers exposed for command modules."""

from .ui import StepTracker

__all__ = ["StepTracker"]
