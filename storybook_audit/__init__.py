"""Accessibility sweep of a compiled Storybook with axe-core."""

__version__ = "0.1.0"
