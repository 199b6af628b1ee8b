"""Exception types raised by the constraint package."""


class ConstraintError(Exception):
    """Base class for every error raised by a constraint."""


class InitializationError(ConstraintError):
    """A constraint could not be bound to its kinematic model.

    A constraint in this state must not be evaluated.
    """


class SubChainError(InitializationError):
    """No kinematic sub-chain exists between the root link and a named link."""


class ConfigError(ConstraintError):
    """A parameter update was rejected (unknown link, bad value or locked constraint)."""
