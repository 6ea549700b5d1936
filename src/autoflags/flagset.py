"""
FlagSet - a named set of command-line flags backed by argparse.

A FlagSet owns the flag table: names, usage text, defaults and the values the
flags write into. Flags are spelled with one or two dashes and take their
argument either as the next token or after an equals sign:

    -name value   -name=value   --name value   --name=value

Boolean flags may also be given bare (`-verbose`), and then never take the
next token as their value. Any other flag takes the next token whatever it
looks like, so `-name -x` sets name to "-x". Names match whole: `-n5` is an
unknown flag "n5", not `-n 5`.

Parsing stops at the first argument that is not a flag, or after a `--`
terminator; the arguments after that point are available from `args()`.

The process-wide default set, `command_line`, is what `autoflags.define()`
registers into and what `autoflags.parse()` parses.
"""

import argparse
import dataclasses
import enum
import json
import logging
import os
import sys
from datetime import timedelta
from typing import Any, Callable, Optional, TextIO

import yaml
from result import Err, Ok, Result

from .errors import FlagParseError, FlagRedefinedError, HelpRequested
from .values import (
    INT_BITS,
    Value,
    format_bool,
    format_duration,
    parse_bool,
    parse_duration,
    parse_float,
    parse_int,
)

logger = logging.getLogger(__name__)


class ErrorHandling(enum.Enum):
    """What a FlagSet does when parsing fails."""

    RAISE = "raise"  # raise FlagParseError
    EXIT = "exit"  # print usage and exit with status 2


@dataclasses.dataclass(frozen=True)
class Ref:
    """A reference to one attribute of an object, used as a flag destination."""

    obj: Any
    attr: str

    def get(self) -> Any:
        return getattr(self.obj, self.attr)

    def set(self, value: Any) -> None:
        setattr(self.obj, self.attr, value)


@dataclasses.dataclass(frozen=True)
class _Kind:
    metavar: str
    parse: Callable[[str], Any]
    format: Callable[[Any], str]
    zero: Any
    bool_flag: bool = False


_KINDS = {
    "int": _Kind("INT", lambda s: parse_int(s, INT_BITS), str, 0),
    "int64": _Kind("INT64", lambda s: parse_int(s, 64), str, 0),
    "uint": _Kind("UINT", lambda s: parse_int(s, INT_BITS, signed=False), str, 0),
    "uint64": _Kind("UINT64", lambda s: parse_int(s, 64, signed=False), str, 0),
    "float64": _Kind("FLOAT", parse_float, str, 0.0),
    "bool": _Kind("BOOL", parse_bool, format_bool, False, bool_flag=True),
    "string": _Kind("STRING", str, str, ""),
    "duration": _Kind("DURATION", parse_duration, format_duration, timedelta(0)),
}


class _RefValue:
    """Adapts a Ref to the Value protocol using a kind's parser and formatter."""

    def __init__(self, ref: Ref, kind: _Kind) -> None:
        self.ref = ref
        self.kind = kind

    def set(self, text: str) -> None:
        self.ref.set(self.kind.parse(text))

    def __str__(self) -> str:
        current = self.ref.get()
        if current is None:
            return ""
        return self.kind.format(current)

    def is_bool_flag(self) -> bool:
        return self.kind.bool_flag

    def zero_text(self) -> str:
        return self.kind.format(self.kind.zero)


@dataclasses.dataclass
class Flag:
    """A registered flag: its name, usage text, value and default as text."""

    name: str
    usage: str
    value: Value
    default: str
    default_is_zero: bool = False


def _is_bool_flag(value: Value) -> bool:
    is_bool_flag = getattr(value, "is_bool_flag", None)
    return callable(is_bool_flag) and bool(is_bool_flag())


def _is_zero_value(value: Value, default: str) -> bool:
    """Report whether `default` is the text of the value type's zero value."""
    if not default:
        return True
    if isinstance(value, _RefValue):
        return default == value.zero_text()
    try:
        zero = type(value)()
    except TypeError:
        # no argumentless constructor; assume a meaningful default
        return False
    return default == str(zero)


def _unquote_usage(usage: str) -> tuple[Optional[str], str]:
    """
    Extract a back-quoted placeholder name from usage text.

    "a `file` to load" gives ("file", "a file to load").
    """
    start = usage.find("`")
    if start >= 0:
        end = usage.find("`", start + 1)
        if end >= 0:
            name = usage[start + 1 : end]
            return name, usage[:start] + name + usage[end + 1 :]
    return None, usage


def _format_description(description: str, flag: Flag) -> str:
    """Append default value info to the flag description."""
    if flag.default_is_zero:
        return description
    default_suffix = f"(default: {flag.default})"
    return f"{description} {default_suffix}" if description else default_suffix


def _config_text(value: Any) -> str:
    if isinstance(value, bool):
        return format_bool(value)
    if value is None:
        return ""
    return str(value)


def _load_config_file(config_path: str) -> Any:
    """
    Load configuration from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the file format is not supported or invalid.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    file_ext = os.path.splitext(config_path)[1].lower()

    with open(config_path, "r") as f:
        if file_ext in [".yaml", ".yml"]:
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML file: {e}")
        elif file_ext == ".json":
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON file: {e}")
        else:
            raise ValueError(
                f"Unsupported file format: {file_ext}. "
                "Supported formats are: .yaml, .yml, .json"
            )


class _FlagParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting when asked to."""

    def __init__(self, error_handling: ErrorHandling, **kwargs: Any) -> None:
        self.error_handling = error_handling
        super().__init__(**kwargs)

    def error(self, message: str) -> None:  # type: ignore[override]
        if self.error_handling is ErrorHandling.RAISE:
            raise FlagParseError(message)
        super().error(message)


class FlagSet:
    """
    A set of defined flags. The argparse parser it keeps renders the help
    text and reports parse errors.

    Example:
        @dataclass
        class Config:
            port: int = 8080

        config = Config()
        fs = FlagSet("server")
        fs.int_var(Ref(config, "port"), "port", config.port, "port to listen on")
        fs.parse(["-port", "9090"])
        assert config.port == 9090

    Flags are usually registered through autoflags.define_with_registry()
    rather than by calling the *_var methods directly.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        error_handling: ErrorHandling = ErrorHandling.RAISE,
    ) -> None:
        """
        Args:
            name: Program name shown in usage and help output.
            error_handling: Whether parse errors raise FlagParseError or exit.
        """
        self.name = name
        self.error_handling = error_handling
        self._flags: dict[str, Flag] = {}
        self._actual: dict[str, Flag] = {}
        self._args: list[str] = []
        self._parsed = False

        # "resolve" lets a user-defined -h or -help take over from the help action
        self.parser: argparse.ArgumentParser = _FlagParser(
            error_handling,
            prog=name,
            add_help=False,
            allow_abbrev=False,
            conflict_handler="resolve",
        )
        # The parser only describes the flags; parse() reads the arguments itself.
        self.parser.add_argument(
            "-h",
            "-help",
            "--help",
            action="help",
            help="show this help message and exit",
        )
        self.parser.add_argument(
            "arguments",
            nargs="*",
            metavar="ARG",
            help=argparse.SUPPRESS,
        )

    def _check_name(self, name: str) -> None:
        if name.startswith("-"):
            raise ValueError(f"flag {name!r} begins with -")
        if "=" in name:
            raise ValueError(f"flag {name!r} contains =")
        if name in self._flags:
            raise FlagRedefinedError(f"Flag name conflict: -{name}")

    def _add(self, value: Value, name: str, usage: str, metavar: str) -> None:
        self._check_name(name)
        default = str(value)
        flag = Flag(
            name=name,
            usage=usage,
            value=value,
            default=default,
            default_is_zero=_is_zero_value(value, default),
        )
        self._flags[name] = flag

        # An empty name cannot be spelled on the command line; "-" stays an argument.
        if not name:
            return

        placeholder, description = _unquote_usage(usage)
        kwargs: dict[str, Any] = {}
        if _is_bool_flag(value):
            kwargs["action"] = "store_true"
        else:
            kwargs["metavar"] = placeholder.upper() if placeholder else metavar
        self.parser.add_argument(
            f"-{name}",
            f"--{name}",
            dest=name,
            default=argparse.SUPPRESS,
            help=_format_description(description, flag).replace("%", "%%"),
            **kwargs,
        )

    def _define(
        self, kind: str, ref: Ref, name: str, default: Any, usage: str
    ) -> None:
        self._check_name(name)
        ref.set(default)
        info = _KINDS[kind]
        self._add(_RefValue(ref, info), name, usage, info.metavar)

    def var(self, value: Value, name: str, usage: str = "") -> None:
        """
        Define a flag whose value is parsed and rendered by `value` itself.

        Raises:
            ValueError: If the name is malformed.
            FlagRedefinedError: If a flag with this name already exists.
        """
        self._add(value, name, usage, "VALUE")

    def int_var(self, ref: Ref, name: str, default: int, usage: str = "") -> None:
        """Define a machine word signed integer flag stored at `ref`."""
        self._define("int", ref, name, default, usage)

    def int64_var(self, ref: Ref, name: str, default: int, usage: str = "") -> None:
        """Define a 64-bit signed integer flag stored at `ref`."""
        self._define("int64", ref, name, default, usage)

    def uint_var(self, ref: Ref, name: str, default: int, usage: str = "") -> None:
        """Define a machine word unsigned integer flag stored at `ref`."""
        self._define("uint", ref, name, default, usage)

    def uint64_var(self, ref: Ref, name: str, default: int, usage: str = "") -> None:
        """Define a 64-bit unsigned integer flag stored at `ref`."""
        self._define("uint64", ref, name, default, usage)

    def float64_var(
        self, ref: Ref, name: str, default: float, usage: str = ""
    ) -> None:
        """Define a floating point flag stored at `ref`."""
        self._define("float64", ref, name, default, usage)

    def bool_var(self, ref: Ref, name: str, default: bool, usage: str = "") -> None:
        """Define a boolean flag stored at `ref`; `-name` alone sets it to True."""
        self._define("bool", ref, name, default, usage)

    def string_var(self, ref: Ref, name: str, default: str, usage: str = "") -> None:
        """Define a string flag stored at `ref`."""
        self._define("string", ref, name, default, usage)

    def duration_var(
        self, ref: Ref, name: str, default: timedelta, usage: str = ""
    ) -> None:
        """Define a duration flag (e.g. "1h30m") stored at `ref` as a timedelta."""
        self._define("duration", ref, name, default, usage)

    def lookup(self, name: str) -> Optional[Flag]:
        """Return the flag registered under `name`, or None."""
        return self._flags.get(name)

    def set(self, name: str, text: str) -> None:
        """
        Set the value of the named flag from text, as if given on the command line.

        Raises:
            FlagParseError: If there is no such flag or the text does not parse.
        """
        flag = self._flags.get(name)
        if flag is None:
            raise FlagParseError(f"no such flag -{name}")
        try:
            flag.value.set(text)
        except Exception as e:
            raise FlagParseError(
                f'invalid value "{text}" for flag -{name}: {e}'
            ) from e
        self._actual[name] = flag

    def visit_all(self, fn: Callable[[Flag], None]) -> None:
        """Call `fn` for every defined flag, in name order."""
        for name in sorted(self._flags):
            fn(self._flags[name])

    def visit(self, fn: Callable[[Flag], None]) -> None:
        """Call `fn` for every flag that has been set, in name order."""
        for name in sorted(self._actual):
            fn(self._actual[name])

    def parse(self, arguments: Optional[list[str]] = None) -> list[str]:
        """
        Parse flags from `arguments` and write them into their destinations.

        Args:
            arguments: Command-line arguments, without the program name.
                If None, uses sys.argv[1:].

        Returns:
            list[str]: The arguments remaining after the flags.

        Raises:
            FlagParseError: On a bad or unknown flag, when error_handling is RAISE.
            HelpRequested: When -h or -help is given, when error_handling is RAISE.
            SystemExit: Instead of either, when error_handling is EXIT.
        """
        if arguments is None:
            arguments = sys.argv[1:]
        self._parsed = True
        remaining = list(arguments)
        while remaining:
            if not self._parse_one(remaining):
                break
        self._args = remaining
        return list(remaining)

    def _parse_one(self, arguments: list[str]) -> bool:
        """
        Consume one flag, and its argument if it takes one, from the front of
        `arguments`. Returns False when the front is not a flag.

        Only whole names match: `-n5` is the flag "n5", never `-n 5`.
        """
        token = arguments[0]
        if len(token) < 2 or token[0] != "-":
            return False
        if token == "--":
            del arguments[0]
            return False
        dashes = 2 if token[1] == "-" else 1
        name = token[dashes:]
        if not name or name[0] in "-=":
            self.parser.error(f"bad flag syntax: {token}")
        del arguments[0]

        name, equals, value = name.partition("=")
        flag = self._flags.get(name)
        if flag is None:
            if name in ("h", "help"):
                self._help(token)
            self.parser.error(f"flag provided but not defined: -{name}")

        if _is_bool_flag(flag.value):
            if not equals:
                value = "true"
        elif not equals:
            # the next token is the value even when it starts with a dash
            if not arguments:
                self.parser.error(f"flag needs an argument: -{name}")
            value = arguments.pop(0)

        try:
            self.set(name, value)
        except FlagParseError as e:
            self.parser.error(str(e))
        return True

    def _help(self, option: str) -> None:
        self.parser.print_help()
        if self.error_handling is ErrorHandling.RAISE:
            raise HelpRequested(f"help requested via {option}")
        self.parser.exit()

    def safe_parse(
        self, arguments: Optional[list[str]] = None
    ) -> Result[list[str], str]:
        """
        Safely parse flags.

        Returns:
            Result[list[str], str]:
                - Ok with the remaining arguments,
                - Err with the error message if parsing fails.
        """
        try:
            return Ok(self.parse(arguments))
        except FlagParseError as e:
            return Err(str(e))

    def parse_config_file(self, path: str) -> None:
        """
        Set flags from a YAML or JSON file mapping flag names to values.

        Values are applied with set(), so they go through the same parsing as
        command-line text. Call this before parse() to let the command line
        override the file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file is not a valid YAML/JSON mapping.
            FlagParseError: If a key names no flag or a value does not parse.
        """
        data = _load_config_file(path)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration file {path} must contain a mapping, "
                f"got {type(data).__name__}"
            )
        for name, value in data.items():
            self.set(str(name), _config_text(value))
        logger.debug("applied %d flag value(s) from %s", len(data), path)

    def args(self) -> list[str]:
        """Return the non-flag arguments left over from the last parse()."""
        return list(self._args)

    def parsed(self) -> bool:
        """Report whether parse() has been called."""
        return self._parsed

    def format_help(self) -> str:
        return self.parser.format_help()

    def print_defaults(self, file: Optional[TextIO] = None) -> None:
        """Print usage and every flag's help line to `file` (default stdout)."""
        self.parser.print_help(file)


command_line = FlagSet(
    os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else None,
    ErrorHandling.EXIT,
)


def parse(arguments: Optional[list[str]] = None) -> list[str]:
    """Parse the command line into the default flag set."""
    return command_line.parse(arguments)


def args() -> list[str]:
    """Return the non-flag arguments left over from the default flag set."""
    return command_line.args()
