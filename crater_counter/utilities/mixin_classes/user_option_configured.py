"""
This module provides the :class:`UserOptionConfigured` mixin class that enables classes to be configured using
:class:`.UserOptions`-derived classes while keeping the ability to reset to the original configuration.

Example:
    Basic usage of the UserOptionConfigured mixin::

        from dataclasses import dataclass

        from crater_counter.utilities.options import UserOptions
        from crater_counter.utilities.mixin_classes.user_option_configured import UserOptionConfigured

        @dataclass
        class SamplerOptions(UserOptions):
            grid_size: int = 75

        class Sampler(UserOptionConfigured[SamplerOptions], SamplerOptions):
            def __init__(self, options: SamplerOptions | None = None):
                super().__init__(SamplerOptions, options=options)

        sampler = Sampler()
        sampler.grid_size = 20
        sampler.reset_settings()
        print(sampler.grid_size)  # Output: 75

.. Note::
    The :class:`UserOptionConfigured` class should come first in the inheritance order due to Method Resolution
    Order (MRO) requirements.
"""

from typing import Generic, TypeVar

from crater_counter.utilities.options import UserOptions


OptionsT = TypeVar("OptionsT", bound=UserOptions)
"""
Type variable bound to UserOptions for type safety
"""


class UserOptionConfigured(Generic[OptionsT]):
    """
    Mixin class providing UserOptions-based configuration with reset capability.

    To use this mixin, subclass it with the :class:`.UserOptions` subclass as the type parameter and also inherit
    from the options class itself so that the options show up as typed attributes::

        class VotingThing(UserOptionConfigured[VotingThingOptions], VotingThingOptions):
            def __init__(self, options: VotingThingOptions | None = None):
                super().__init__(VotingThingOptions, options=options)

    .. Warning::
        If options are not provided during initialization, default initialization of the options type will be used.
    """

    def __init__(self, options_type: type[OptionsT], *args, options: OptionsT | None = None, **kwargs) -> None:
        """
        :param options_type: The type of the :class:`.UserOptions` to use
        :param options: An optional instance of `options_type` preconfigured.
        """

        super().__init__(*args, **kwargs)

        if options is None:
            options = options_type()

        options.apply_options(self)

        self._original_options: OptionsT = options
        """
        The original configuration for this class
        """

    def reset_settings(self) -> None:
        """
        Resets the class to the options it was originally initialized with.
        """

        self._original_options.apply_options(self)

    @property
    def original_options(self) -> OptionsT:
        """
        The original configuration options used during initialization.
        """
        return self._original_options
