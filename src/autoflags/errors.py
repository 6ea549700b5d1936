"""
Exceptions raised by autoflags.

Binding errors (BindError and subclasses) are raised by define() and
define_with_registry() when their arguments are unusable. They signal a
programming mistake in the caller and are raised before any field is
registered.

Flag set errors (FlagError and subclasses) come from the registry itself:
bad flag names, duplicate registrations and malformed command lines.
"""


class BindError(Exception):
    """Base class for errors raised while binding a dataclass to flags."""

    message = "cannot bind flags"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.message)


class PointerExpected(BindError):
    """The config argument is a plain value rather than a reference to storage."""

    message = "pointer expected"


class InvalidArgument(BindError):
    """The config argument is None or does not refer to a dataclass instance."""

    message = "non-nil pointer to struct expected"


class InvalidRegistry(BindError):
    """An explicit flag set was required but None was given."""

    message = "non-nil flag set expected"


class FlagError(Exception):
    """Base class for errors raised by a FlagSet."""


class FlagParseError(FlagError):
    """The command line (or a config file) could not be applied to the flag set."""


class HelpRequested(FlagParseError):
    """-h or -help was given and no flag by that name is defined."""


class FlagRedefinedError(FlagError, ValueError):
    """A flag with the same name is already registered."""
