"""
This module provides a mixin implementing equality comparison from instance attributes.
"""

from typing import Any

import numpy as np


class AttributeEqualityComparison:
    """
    A mixin that implements equality comparison based on the public attributes of two instances.

    Numeric array-like attributes are compared with :func:`numpy.allclose`, everything else with ``==``.  Two
    configured detectors therefore compare equal when they carry the same tuning, regardless of any internal
    working state (attributes starting with an underscore are ignored).
    """

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False

        mine = self._public_attributes()
        theirs = other._public_attributes()

        if set(mine) != set(theirs):
            return False

        return all(self._value_comparison(mine[key], theirs[key]) for key in mine)

    def _public_attributes(self) -> dict[str, Any]:
        return {key: value for key, value in self.__dict__.items() if not key.startswith('_')}

    @staticmethod
    def _value_comparison(val1: Any, val2: Any) -> bool:
        """
        Compare two values, handling array-like objects.

        :param val1: First value to compare
        :param val2: Second value to compare
        :return: True if values are equal, False otherwise
        """
        if isinstance(val1, (np.ndarray, list, tuple)) and isinstance(val2, (np.ndarray, list, tuple)):
            try:
                return bool(np.allclose(val1, val2))
            except (TypeError, ValueError):
                # non-numeric or ragged sequences
                return bool(np.all(np.asarray(val1, dtype=object) == np.asarray(val2, dtype=object)))
        return bool(val1 == val2)
