"""
Munin utilities (small helpers shared by every layer)

Overview
- UnsetType / Unset
  • Singleton sentinel meaning “not provided”, distinct from None.
  • Falsey, printable as "Unset", and sealed against subclassing.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; every other value (None/0/"") passes through.

- casefold(text)
  • Key normalization used by the registry, the parser and the completer so every
    name lookup in the package is case-insensitive in the same way.

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated callables.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) as an
    immutable snapshot (tuple / MappingProxyType / frozenset).

- pluralize(word, count)
  • Tiny English pluralizer for listings (“1 command”, “3 commands”).
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Sentinel type representing a value that was not provided.

    Used where None is a legitimate value (e.g. a handler that returns None, a
    usage string that is explicitly absent) but the API must still tell “not
    given” apart. UnsetType() always returns the same instance.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return `object` unless it is the Unset sentinel, in which case return `default`.

    Falsey values such as None, 0 or "" are preserved; only Unset is replaced.

    Examples
    - coalesce("spawn", "x") -> "spawn"
    - coalesce(Unset, "x")   -> "x"
    - coalesce(None, "x")    -> None
    """
    return object if object is not Unset else default


def casefold(text, /):
    """
    Normalize a command, namespace, flag or key name for case-insensitive lookups.

    Leading and trailing whitespace is not significant for names either, so it is
    removed as part of the normalization.
    """
    if not isinstance(text, str):
        raise TypeError("casefold() argument must be a string")
    return text.strip().lower()


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator that will.

    Forms
    - rename(callable, name) -> callable  (renamed in place)
    - rename(name)           -> decorator
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


def _freeze(object):
    """
    Shallow, read-only snapshot of a container; other objects are returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, (str, bytes, bytearray)):
        return tuple(object)
    elif isinstance(object, Mapping):
        return MappingProxyType(dict(object))
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Containers are returned as frozen snapshots so callers cannot mutate the
    owner's state through the public API.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


_IRREGULAR = {
    "person": "people",
    "child": "children",
}


@functools.cache
def _plural(word, /):
    lower = word.lower()
    if lower in _IRREGULAR:
        plural = _IRREGULAR[lower]
    elif lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = lower + "es"
    elif lower.endswith("y") and lower[-2:-1] not in ("a", "e", "i", "o", "u", ""):
        plural = lower[:-1] + "ies"
    else:
        plural = lower + "s"

    if word.isupper():
        return plural.upper()
    if word[:1].isupper():
        return plural.capitalize()
    return plural


def pluralize(word, count=2, /):
    """
    Return `word` as-is when count == 1, otherwise its English plural.

    Casing is preserved (UPPER → UPPER, Title → Title).

    Examples
    - pluralize("command", 1) -> "command"
    - pluralize("command", 3) -> "commands"
    - pluralize("entry")      -> "entries"
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() first argument must be a string")
    if count == 1 or not word:
        return word
    return _plural(word)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "casefold",
    "rename",
    "mirror",
    "pluralize",
)
