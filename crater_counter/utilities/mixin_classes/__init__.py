"""
This package contains helpful mixin classes to provide basic functionality throughout crater_counter.
"""

from crater_counter.utilities.mixin_classes.attribute_equality_comparison import AttributeEqualityComparison
from crater_counter.utilities.mixin_classes.attribute_printing import AttributePrinting
from crater_counter.utilities.mixin_classes.user_option_configured import UserOptionConfigured

__all__ = ["AttributeEqualityComparison", "AttributePrinting", "UserOptionConfigured"]
