r"""
Anoma CLI argument descriptors and default resolution.

Overview
- Descriptors
  • Required[_T]: value-bearing argument that must resolve to a value, either
    from the command line or from its default source.
  • Optional[_T]: value-bearing argument that may resolve to None.
  • Flag: presence-only switch; absent means False, present means True.
  All three are addressed by a single kebab-case key ("fee-token" is given
  as --fee-token on the command line).

- Default sources (closed set)
  • NoDefault: nothing to fall back to.
  • StaticDefault(value): a fixed, already typed value.
  • EnvThenStatic(variable, value): the environment variable if set and
    non-empty (parsed like command-line text), else the static value.
  • FromContext(extractor): derived from the runtime context; parsing yields
    a Pending placeholder that resolve() replaces once a context exists.

- Declarations
  • descriptor.definition(descr, conflicts=...) -> Definition consumed by the
    command composer (help text, metavar, choices, rendered default, conflicts).
  • Group(name, keys, required=...): at most one of keys, exactly one when
    required.

Parsing contract
- descriptor.parse(matches) reads the raw text recorded for its key on the
  given matches level. Precedence: explicit value > environment > static.
- Conversion goes through the descriptor type (any callable). ValueError,
  TypeError and ArithmeticError raised by it become ArgumentParseError naming
  the key and the raw text; a default is never substituted for a bad value.

Derivation
- descriptor.opt() and descriptor.default(source) return new descriptors;
  descriptors are never mutated after construction.

Quick example:
    >>> AMOUNT = Required("amount", Amount.parse)
    >>> FEE_AMOUNT = AMOUNT.default(Amount(0))
    >>> SOURCE_OPT = Required("source", WalletAddress).opt()

Public API
- Classes: Required, Optional, Flag, Definition, Group, Pending
- Default sources: NoDefault, StaticDefault, EnvThenStatic, FromContext
- Functions: resolve
"""
import dataclasses
import enum
import functools
import operator
import os
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import final

from rich.text import Text

from .faults import ArgumentParseError, FaultCode, MissingArgumentError
from .utils import *


class ArgumentType(type):
    """
    Metaclass giving descriptors stable, introspectable representations.

    Responsibilities
    - Derive __typename__ from the class name ("Required" -> "required") for
      messages and help output.
    - Expose the names listed in __introspectable__ as read-only properties
      over private fields (see mirror()).
    - Provide __repr__ and __rich_repr__ built from __displayable__ (or
      __introspectable__ when unset).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise representation, e.g. required(key='amount', ...).
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class DefaultSource:
    """
    Where an absent argument takes its value from.

    The set of sources is closed: NoDefault, StaticDefault, EnvThenStatic and
    FromContext. Subclassing outside this module is rejected.
    """
    __slots__ = ()

    def __init_subclass__(cls, **options):
        if cls.__module__ != __name__:
            raise TypeError("type 'DefaultSource' is not an acceptable base type")
        super().__init_subclass__(**options)

    def resolve(self, argument, /):
        raise NotImplementedError

    def render(self):
        return None


@final
class NoDefaultType(DefaultSource):
    """
    The absence of a default: required arguments must then be given, optional
    ones resolve to None.
    """
    __slots__ = ()

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __repr__(self):
        return "NoDefault"

    def resolve(self, argument, /):
        return None


NoDefault = NoDefaultType()


@dataclass(frozen=True, slots=True)
class StaticDefault(DefaultSource):
    value: object

    def resolve(self, argument, /):
        return self.value

    def render(self):
        return str(self.value)


@dataclass(frozen=True, slots=True)
class EnvThenStatic(DefaultSource):
    """
    Read the environment variable, falling back to a static value.

    An empty variable counts as unset. A set variable goes through the same
    converter as command-line text and fails the same way, naming the
    variable.
    """
    variable: str
    value: object = None

    def resolve(self, argument, /):
        if raw := os.environ.get(self.variable):
            return argument.convert(raw, variable=self.variable)
        return self.value

    def render(self):
        if self.value is None:
            return f"${self.variable}"
        return f"${self.variable} or {self.value}"


@dataclass(frozen=True, slots=True)
class FromContext(DefaultSource):
    """
    Derive the value from the runtime context, e.g. the native token.

    The extractor receives the context object and returns the typed value.
    """
    extractor: Callable

    def resolve(self, argument, /):
        return Pending(argument.key, self.extractor)

    def render(self):
        return "from context"


@dataclass(frozen=True)
class Pending:
    """
    Placeholder for a value derived from the runtime context.

    Produced while parsing an argument with a FromContext default; replaced
    by resolve() once the context exists.
    """
    key: str
    extractor: Callable = dataclasses.field(repr=False, compare=False)

    def resolve(self, context, /):
        return self.extractor(context)


def resolve(object, context, /):
    """
    Replace every Pending value reachable from object using context.

    Dataclass instances are walked field by field and rebuilt only when a
    field changed; any other value is returned as-is.
    """
    if isinstance(object, Pending):
        return object.resolve(context)
    if dataclasses.is_dataclass(object) and not isinstance(object, type):
        changes = {}
        for field in dataclasses.fields(object):
            if not field.init:
                continue
            value = getattr(object, field.name)
            if (resolved := resolve(value, context)) is not value:
                changes[field.name] = resolved
        return dataclasses.replace(object, **changes) if changes else object
    return object


@dataclass(frozen=True)
class Definition:
    """
    Declarative description of one argument, as consumed by the composer.

    Fields
    - key: argument key, given as --{key}.
    - descr: help text or None.
    - cardinality: "required", "optional" or "flag".
    - required: must appear on the command line (required without default).
    - takes_value: False for flags.
    - metavar: value label in help, None for flags.
    - choices: accepted values for enumerations, else empty.
    - default: rendered default for help, or None.
    - conflicts: keys that cannot be given together with this one.
    """
    key: str
    descr: str | Text | None
    cardinality: str
    required: bool
    takes_value: bool
    metavar: str | None
    choices: tuple[str, ...]
    default: str | None
    conflicts: frozenset[str]


def _keyof(object, /):
    if isinstance(object, Argument):
        return object.key
    if isinstance(object, str):
        return object
    raise TypeError("argument references must be descriptors or keys")


@dataclass(frozen=True)
class Group:
    """
    A named set of argument keys of which at most one can be given; exactly
    one when required.
    """
    name: str
    keys: tuple[str, ...]
    required: bool = False

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise TypeError("group 'name' must be a non-empty string")
        keys = tuple(map(_keyof, self.keys))
        if not keys:
            raise ValueError("group %r must contain at least one key" % self.name)
        if len(set(keys)) != len(keys):
            raise ValueError("group %r cannot contain duplicated keys" % self.name)
        object.__setattr__(self, "keys", keys)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize descriptor metadata in place.

    - key: kebab-case, starting with a letter ("fee-token", "tx-hash").
    - type: any callable converter.
    - default: a DefaultSource; FromContext only on required descriptors.
    - metavar: Unset or a non-empty string.
    """
    if not isinstance(key := metadata["key"], str):
        raise TypeError(f"{cls.__typename__} 'key' must be a string")
    elif not re.fullmatch(r"[a-z][a-z0-9]*(-[a-z0-9]+)*", key):
        raise ValueError(f"{cls.__typename__} 'key' must be a kebab-case identifier, got {key!r}")

    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if not isinstance(source := metadata["source"], DefaultSource):
        raise TypeError(f"{cls.__typename__} 'default' must be a default source")
    if isinstance(source, FromContext) and not issubclass(cls, Required):
        raise TypeError(f"{cls.__typename__} cannot take its default from the context")

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar, key.upper().replace("-", "_"))


class Argument(metaclass=ArgumentType):
    """
    Shared behavior of Required, Optional and Flag. Not instantiable.
    """

    __introspectable__ = (
        "key",
        "type",
        "source",
        "metavar",
    )

    __displayable__ = (
        "key",
        "type",
        "source",
    )

    def __new__(cls, key, /, type=str, *, default=NoDefault, metavar=Unset):
        if cls is Argument:
            raise TypeError("type 'Argument' cannot be instantiated directly")
        metadata = {
            "key": key,
            "type": type,
            "source": default,
            "metavar": metavar,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def cardinality(self):
        return type(self).__typename__

    @property
    def choices(self):
        if isinstance(self._type, enum.EnumType):
            return tuple(str(member.value) for member in self._type)
        return ()

    def opt(self):
        """
        Return the optional variant of this descriptor (same key and type).
        """
        return Optional(self._key, self._type, metavar=self._metavar)

    def default(self, source, /):
        """
        Return a required variant of this descriptor falling back to source.

        A plain value is wrapped in StaticDefault.
        """
        if not isinstance(source, DefaultSource):
            source = StaticDefault(source)
        return Required(self._key, self._type, default=source, metavar=self._metavar)

    def convert(self, raw, /, *, variable=Unset):
        """
        Convert raw text with the descriptor type.

        Raises
        - ArgumentParseError: the converter rejected the text; carries the
          key, the raw text and, for environment values, the variable name.
        """
        try:
            return self._type(raw)
        except (ValueError, TypeError, ArithmeticError) as error:
            origin = f" (from ${variable})" if variable else ""
            raise ArgumentParseError(
                f"invalid value {raw!r} for '--{self._key}'{origin}: {error}",
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                key=self._key,
                input=raw,
                variable=coalesce(variable),
                hint=f"expected one of: {", ".join(self.choices)}" if self.choices else None,
            ) from error

    def definition(self, descr=Unset, /, *, conflicts=()):
        """
        Describe this descriptor for a command definition.

        Parameters
        - descr: help text (str or rich Text).
        - conflicts: descriptors or keys this argument cannot be combined with.
        """
        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{type(self).__typename__} 'descr' cannot be empty")
        if isinstance(conflicts, str | Argument) or not isinstance(conflicts, Iterable):
            raise TypeError(f"{type(self).__typename__} 'conflicts' must be an iterable")
        if self._key in (conflicts := frozenset(map(_keyof, conflicts))):
            raise ValueError(f"{type(self).__typename__} {self._key!r} cannot conflict with itself")

        return Definition(
            key=self._key,
            descr=coalesce(descr),
            cardinality=self.cardinality,
            required=isinstance(self, Required) and self._source is NoDefault,
            takes_value=not isinstance(self, Flag),
            metavar=None if isinstance(self, Flag) else self._metavar,
            choices=self.choices,
            default=self._source.render(),
            conflicts=conflicts,
        )

    def parse(self, matches, /):
        raise NotImplementedError


class Required[_T](Argument):
    """
    Value-bearing argument that always resolves to a value.

    Without a default source it must be given on the command line (the
    matcher rejects the input otherwise); with one, the source is consulted
    when the argument is absent.
    """

    def parse(self, matches, /):
        if (raw := matches.value_of(self._key)) is not None:
            return self.convert(raw)
        if self._source is NoDefault:
            raise MissingArgumentError(
                f"the required argument '--{self._key}' was not provided",
                title="missing argument",
                code=FaultCode.MISSING_ARGUMENTS,
                keys=(self._key,),
            )
        return self._source.resolve(self)


class Optional[_T](Argument):
    """
    Value-bearing argument that resolves to None when absent (or to its
    environment/static fallback when it has one).
    """

    def parse(self, matches, /):
        if (raw := matches.value_of(self._key)) is not None:
            return self.convert(raw)
        return self._source.resolve(self)


class Flag(Argument):
    """
    Presence-only switch. Never fails: absent is False, present is True.
    """

    __displayable__ = (
        "key",
    )

    def __new__(cls, key, /):
        return super().__new__(cls, key, bool)

    def opt(self):
        raise TypeError("flag cannot be made optional")

    def default(self, source, /):
        raise TypeError("flag cannot have a default")

    def parse(self, matches, /):
        return matches.is_present(self._key)


__all__ = (
    "Argument",
    "Required",
    "Optional",
    "Flag",
    "Definition",
    "Group",
    "DefaultSource",
    "NoDefault",
    "StaticDefault",
    "EnvThenStatic",
    "FromContext",
    "Pending",
    "resolve",
)
