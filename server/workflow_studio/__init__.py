"""Workflow Studio - approval/task workflow validation and simulation engine."""

__version__ = "1.0.0"
