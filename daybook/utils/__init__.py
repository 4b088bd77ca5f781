"""Utility helpers package."""

from daybook.utils.exceptions import DaybookError

__all__ = ["DaybookError"]
