"""
Binding of dataclass fields to command-line flags.

Fields opt in with a "flag" entry in their metadata, either just the flag
name or the name and usage text separated by a comma:

    @dataclass
    class Config:
        name: str = field(default="John Doe", metadata={"flag": "name,name of user"})
        age: Uint = field(default=34, metadata={"flag": "age"})
        married: bool = False  # not exposed

    config = Config()
    autoflags.define(config)
    autoflags.parse()

After parsing, the instance holds the values given on the command line and
its original values for every flag that was not given.
"""

import dataclasses
import logging
import typing
from datetime import timedelta
from typing import Any, Optional, Union

from result import Err, Ok, Result

from . import flagset
from .errors import BindError, InvalidArgument, InvalidRegistry, PointerExpected
from .flagset import FlagSet, Ref
from .values import Int64, Uint, Uint64, Value

logger = logging.getLogger(__name__)

TAG = "flag"

# Plain values: passing one of these can never let a flag write back to the caller.
_VALUE_TYPES = (bool, int, float, complex, str, bytes, tuple, frozenset, range, timedelta)

_REGISTRARS: dict[Any, str] = {
    int: "int_var",
    Int64: "int64_var",
    Uint: "uint_var",
    Uint64: "uint64_var",
    float: "float64_var",
    bool: "bool_var",
    str: "string_var",
    timedelta: "duration_var",
}


def _get_optional_inner_type(type_hint: Any) -> Optional[Any]:
    """
    If type_hint is Optional[T] (i.e., Union[T, None]), return T.
    Otherwise, return None.
    """
    origin = getattr(type_hint, "__origin__", None)
    if origin is Union:
        args = type_hint.__args__
        non_none_args = [a for a in args if a is not type(None)]
        if len(non_none_args) == 1 and type(None) in args:
            return non_none_args[0]
    return None


def _field_types(cls: type) -> dict[str, Any]:
    """Resolve field annotations, falling back to the raw ones if they can't be."""
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {f.name: f.type for f in dataclasses.fields(cls)}


def _validate_config(config: Any) -> None:
    if isinstance(config, _VALUE_TYPES):
        raise PointerExpected()
    if config is None:
        raise InvalidArgument()
    if isinstance(config, type) or not dataclasses.is_dataclass(config):
        raise InvalidArgument()


def _is_addressable(config: Any, field: dataclasses.Field) -> bool:
    """A field is addressable if it can be both read and assigned on the instance."""
    if type(config).__dataclass_params__.frozen:
        return False
    return hasattr(config, field.name)


def _split_tag(tag: str) -> tuple[str, str]:
    """Split "name,usage" on the first comma; the usage may itself contain commas."""
    name, _, usage = tag.partition(",")
    return name, usage


def _registrar_for(annotation: Any, current: Any) -> Optional[str]:
    """
    Pick the FlagSet method that registers a field.

    The declared annotation decides; when it names no supported kind, the
    exact type of the field's current value is used instead.
    """
    inner_type = _get_optional_inner_type(annotation)
    if inner_type is not None:
        annotation = inner_type
    try:
        registrar = _REGISTRARS.get(annotation)
    except TypeError:
        # unhashable annotation
        registrar = None
    if registrar is None:
        registrar = _REGISTRARS.get(type(current))
    return registrar


def _define_field(
    registry: FlagSet, config: Any, field: dataclasses.Field, annotation: Any
) -> None:
    """Register a single field, or skip it if it isn't tagged or supported."""
    if not _is_addressable(config, field):
        return
    tag = field.metadata.get(TAG, "")
    if not tag:
        return
    name, usage = _split_tag(tag)
    current = getattr(config, field.name)

    if isinstance(current, Value):
        registry.var(current, name, usage)
    else:
        registrar = _registrar_for(annotation, current)
        if registrar is None:
            return
        getattr(registry, registrar)(Ref(config, field.name), name, current, usage)

    logger.debug("bound %s.%s to flag -%s", type(config).__name__, field.name, name)


def define_with_registry(registry: Optional[FlagSet], config: Any) -> None:
    """
    Define flags in `registry` for the flag-tagged fields of `config`.

    Args:
        registry: The flag set to register into.
        config: A dataclass instance. Flags write parsed values straight into
            its fields, and each field's current value becomes the flag default.

    Raises:
        PointerExpected: If `config` is a plain value such as an int or str.
        InvalidArgument: If `config` is None or not a dataclass instance.
        InvalidRegistry: If `registry` is None.
    """
    _validate_config(config)
    if registry is None:
        raise InvalidRegistry()

    types = _field_types(type(config))
    for field in dataclasses.fields(config):
        _define_field(registry, config, field, types.get(field.name, field.type))


def define(config: Any) -> None:
    """
    Define flags in the default flag set for the flag-tagged fields of `config`.

    See define_with_registry().
    """
    define_with_registry(flagset.command_line, config)


def safe_define_with_registry(
    registry: Optional[FlagSet], config: Any
) -> Result[None, BindError]:
    """
    Like define_with_registry(), but return the outcome instead of raising.

    Returns:
        Result[None, BindError]:
            - Ok(None) when the fields were bound,
            - Err with the BindError explaining why the arguments were rejected.
    """
    try:
        define_with_registry(registry, config)
        return Ok(None)
    except BindError as e:
        return Err(e)


def safe_define(config: Any) -> Result[None, BindError]:
    """Like define(), but return the outcome instead of raising."""
    return safe_define_with_registry(flagset.command_line, config)
