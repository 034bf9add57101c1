"""
Anoma CLI utilities (small building blocks shared by every layer)

Overview
- UnsetType / Unset
  • Sentinel for "not provided" where None is a meaningful value (an optional
    argument that resolved to nothing is None, an argument nobody looked at yet
    is Unset).
- coalesce(value, default=None)
  • Materialize Unset into a default, keep every other value (None included).
- rename(callable, name) / @rename("name")
  • Give generated callables stable names for tracebacks and reprs.
- mirror("attr")
  • Read-only property over a private backing field; containers are copied on
    read so the public surface of descriptors and commands cannot be mutated.
- pluralize(word, count)
  • Tiny English pluralizer for fault messages ("argument" / "arguments").
- ordinal(number)
  • Word ordinals for position-first fault messages ("third position").

Names not listed in __all__ are internal.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for a value that was not provided.

    A single instance, Unset, exists per process. It is falsy, prints as
    "Unset" and cannot be subclassed.
    """

    def __or__(self, other, /):
        # PEP 604 unions in isinstance checks (str | Unset)
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsy values (None, 0, "", False) are kept: only Unset is replaced.

    Examples
    - coalesce("nam", "fallback") -> "nam"
    - coalesce(Unset, "fallback") -> "fallback"
    - coalesce(None, "fallback")  -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__ and __qualname__ on a callable, or build a decorator doing so.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator

    Raises
    - TypeError: on a non-callable target, a non-string name, a wrong number of
      arguments, or a built-in whose names cannot be updated.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Copy containers recursively (tuples stay tuples, mappings become dicts).

    Strings, descriptors, commands and any other scalar are returned as-is.
    """
    if isinstance(object, tuple):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private field "_{name}".

    Container values are copied on every read, so callers can never mutate
    the state of the owning object through the property.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def pluralize(word, count, /):
    """
    Return word as-is for a count of one, otherwise its regular English plural.

    Only the regular forms used in fault messages are covered
    (argument → arguments, switch → switches, key → keys).
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() first argument must be a string")
    if count == 1 or not word:
        return word
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    if word.endswith("y") and word[-2:-1] not in tuple("aeiou"):
        return word[:-1] + "ies"
    return word + "s"


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal for a 1-based position.

    1..10 are spelled out ("first" … "tenth"); others use numeric suffixes
    with the usual teens exception (11th, 12th, 13th).
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


Unset = UnsetType()
"""
The single "not provided" sentinel.

Distinct from None (an optional argument that resolved to nothing) and falsy.
Materialize it with coalesce(value, default).
"""


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "ordinal",
    "UnsetType",
    "Unset",
)
