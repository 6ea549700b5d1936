"""
autoflags - expose dataclass fields as command-line flags.

Tag the fields of a configuration dataclass with a "flag" metadata entry
("name" or "name,usage text"), pass an instance to define(), and parse the
command line. Each tagged field becomes a flag that writes directly into the
instance, with the field's current value as the default. Flags can also be
loaded from a YAML or JSON file.
"""

from .binder import define, define_with_registry, safe_define, safe_define_with_registry
from .errors import (
    BindError,
    FlagError,
    FlagParseError,
    FlagRedefinedError,
    HelpRequested,
    InvalidArgument,
    InvalidRegistry,
    PointerExpected,
)
from .flagset import ErrorHandling, Flag, FlagSet, Ref, args, parse
from .values import Int64, Uint, Uint64, Value, format_duration, parse_duration

__version__ = "1.0.0"
__all__ = [
    "define",
    "define_with_registry",
    "safe_define",
    "safe_define_with_registry",
    "parse",
    "args",
    "FlagSet",
    "Flag",
    "Ref",
    "ErrorHandling",
    "Value",
    "Int64",
    "Uint",
    "Uint64",
    "parse_duration",
    "format_duration",
    "BindError",
    "PointerExpected",
    "InvalidArgument",
    "InvalidRegistry",
    "FlagError",
    "FlagParseError",
    "HelpRequested",
    "FlagRedefinedError",
]
