"""
This package provides general utilities (configuration and mixin classes) used throughout crater_counter.
"""

from crater_counter.utilities.options import UserOptions
from crater_counter.utilities.mixin_classes import AttributeEqualityComparison, AttributePrinting, UserOptionConfigured

__all__ = ["UserOptions", "AttributeEqualityComparison", "AttributePrinting", "UserOptionConfigured"]
