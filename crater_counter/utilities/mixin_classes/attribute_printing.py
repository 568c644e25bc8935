"""
This module provides a mixin implementing default __str__ and __repr__ functionality from instance attributes.
"""


class AttributePrinting:
    """
    A mixin class that provides __str__ and __repr__ built from the instance attributes.

    Attributes starting with an underscore are reported through the property of the same name (without the
    underscore) when one exists, and are skipped otherwise so that internal working state (caches, cursors) does not
    clutter the output.
    """

    def _build_representation(self, attribute_repr: bool) -> str:
        """
        Turns the instance into a ``ClassName(attr=value, ...)`` string.

        :param attribute_repr: Whether to call repr on attributes instead of str.
        """

        attributes = []
        for attr, value in self.__dict__.items():
            if attr.startswith('_'):
                prop_name = attr.lstrip('_')
                if not isinstance(getattr(type(self), prop_name, None), property):
                    continue
                attr = prop_name
                value = getattr(self, prop_name)

            text = f"{attr}={value!r}" if attribute_repr else f"{attr}={value}"
            attributes.append(text.replace('\n', ''))

        return f"{type(self).__name__}({', '.join(attributes)})"

    def __str__(self) -> str:
        return self._build_representation(False)

    def __repr__(self) -> str:
        return self._build_representation(True)
