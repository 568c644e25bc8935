"""
This module provides the :class:`UserOptions` abstract dataclass used to configure the detection classes in
crater_counter.
"""

import copy

from dataclasses import dataclass, fields

from typing import Any

from abc import ABCMeta


@dataclass
class UserOptions(metaclass=ABCMeta):
    """
    This is an abstract class used to create a dataclass of user options.

    These options set the defaults for the tuning parameters of the associated class.  The options class for a
    configurable class follows the naming scheme <class_name>Options and is passed as the ``options`` keyword
    argument of the class's ``__init__``.

    To apply options to a class, the :meth:`apply_options` method should be invoked (which is done for you by the
    :class:`.UserOptionConfigured` mixin).

    A hand rolled configured class looks like:

        >>> @dataclass
        ... class GridOptions(UserOptions):
        ...     grid_size: int = 75
        >>> class Grid(GridOptions):
        ...     def __init__(self, options: GridOptions | None = None):
        ...         (options or GridOptions()).apply_options(self)
        >>> Grid(GridOptions(grid_size=20)).grid_size
        20
    """

    def override_options(self) -> None:
        """
        This method is used for special cases when certain options should be derived from other options before they
        are applied (for instance a preset that fills in an unset threshold).
        """
        pass

    def apply_options(self, target: object) -> None:
        """
        Update the options as attributes of the target object.

        Each option is deep copied so that mutating a configured instance never modifies the options object (which
        is kept around to reset the instance later).

        :param target: the instance that we are to update
        """
        target.__dict__.update(copy.deepcopy(self.options_dict))

    @property
    def options_dict(self) -> dict[str, Any]:
        """
        The options of this dataclass as a dictionary mapping the field name to its value.

        This property ignores all internal attributes and methods.
        """

        self.override_options()
        return {option.name: getattr(self, option.name) for option in fields(self)}
