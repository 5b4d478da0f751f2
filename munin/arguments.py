r"""
Munin argument parsing.

Overview
- tokenize(text)
  • Splits raw argument text on whitespace runs, honoring "double" and 'single'
    quoted runs (quotes stripped, an unterminated quote runs to the end).

- parse(text, caller) -> CommandArgs
  • Classifies every token, left to right:
      --key=value   named argument (first '=' only; the value may contain '=')
      --name        flag
      -abc          bundled short flags a, b, c (not when the 2nd char is a digit)
      anything else positional, in encounter order
  • "count=5" is positional: only tokens starting with "--" can be named.

- CommandArgs
  • Immutable snapshot of one invocation: positional tuple, named mapping,
    flag set, raw text and the opaque caller handle.
  • Typed access (get / get_named + parser) never raises: absent, empty or
    unparsable values yield the caller's default.

- Parsers (closed set, chosen at the call site)
  • parse_str, parse_int, parse_long, parse_float, parse_double, parse_bool.
    Each returns the converted value or raises ValueError; CommandArgs turns the
    failure into the default.

Quick example
    >>> args = parse('"Iron Sword" 5 --silent -f --filter=boar')
    >>> args.positional
    ('Iron Sword', '5')
    >>> args.get(1, 1, parse_int)
    5
    >>> args.has_flag("silent"), args.has_flag("F")
    (True, True)
    >>> args.get_named("filter")
    'boar'
"""
import math
import re
import struct
from collections.abc import Iterable
from types import MappingProxyType
from typing import NamedTuple, Protocol, runtime_checkable

from .utils import Unset, casefold, coalesce, mirror

_QUOTES = frozenset("\"'")

_INT32 = (-2 ** 31, 2 ** 31 - 1)
_INT64 = (-2 ** 63, 2 ** 63 - 1)

# invariant-culture integer literal: optional sign, ascii digits only
_INTEGER = re.compile(r"[+-]?[0-9]+")
# invariant-culture float literal: no digit separators, no hex
_FLOAT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:nan|infinity|inf)", re.IGNORECASE)

_TRUTHY = frozenset({"true", "1", "yes", "on"})


def tokenize(text, /):
    """
    Split raw argument text into tokens.

    Rules
    - a quote character opens a quoted run closed by the same character; the other
      quote character is literal inside it.
    - whitespace inside a quoted run is kept; outside it separates tokens.
    - quote characters are stripped; quoting can join adjacent text (a"b c"d → ab cd).
    - an unterminated quote consumes the rest of the input.
    - empty tokens are never emitted (so "" on its own produces nothing).
    """
    if not isinstance(text, str):
        raise TypeError("tokenize() argument must be a string")

    tokens = []
    current = []
    quote = None

    for char in text:
        if quote is None and char in _QUOTES:
            quote = char
        elif char == quote:
            quote = None
        elif quote is None and char.isspace():
            if current:
                tokens.append("".join(current))
                current.clear()
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))
    return tokens


def parse_str(value, /):
    return value


def _integer(value, bounds):
    if not _INTEGER.fullmatch(value.strip()):
        raise ValueError("invalid integer literal %r" % value)
    number = int(value)
    lower, upper = bounds
    if not lower <= number <= upper:
        raise ValueError("integer literal %r out of range" % value)
    return number


def parse_int(value, /):
    """
    32-bit signed integer.
    """
    return _integer(value, _INT32)


def parse_long(value, /):
    """
    64-bit signed integer.
    """
    return _integer(value, _INT64)


def parse_double(value, /):
    """
    Double-precision float (decimal or exponent notation, nan/infinity accepted).
    """
    if not _FLOAT.fullmatch(value := value.strip()):
        raise ValueError("invalid float literal %r" % value)
    return float(value)


def parse_float(value, /):
    """
    Single-precision float: finite values beyond float32 range are rejected.
    """
    number = parse_double(value)
    if math.isfinite(number):
        try:
            number = struct.unpack("f", struct.pack("f", number))[0]
        except OverflowError:
            raise ValueError("float literal %r out of range" % value) from None
    return number


def parse_bool(value, /):
    """
    "true", "1", "yes" and "on" (any case) are True; everything else is False.
    """
    return casefold(value) in _TRUTHY


class RosterEntry(NamedTuple):
    """
    one active caller as enumerated by the host.
    """
    name: str
    handle: object


@runtime_checkable
class Roster(Protocol):
    """
    host collaborator enumerating the callers currently connected.
    """

    def enumerate_active_callers(self) -> Iterable[RosterEntry]: ...


def find_caller(name, roster, /):
    """
    Resolve a (partial) caller name against a roster.

    Exact case-insensitive match first, then the first case-insensitive substring
    match in the roster's own iteration order; None when nothing matches.
    """
    if not name or roster is None:
        return None
    needle = casefold(name)
    entries = list(roster.enumerate_active_callers())

    for entry in entries:
        if casefold(entry.name) == needle:
            return entry.handle
    for entry in entries:
        if needle in casefold(entry.name):
            return entry.handle
    return None


class CommandArgs:
    """
    Parsed arguments of one invocation (immutable).

    Attributes
    - positional: tuple of positional tokens in encounter order.
    - named: read-only mapping of lower-cased keys to values (from --key=value).
    - flags: frozenset of lower-cased flag names (from --flag and -abc).
    - raw: the unparsed argument text.
    - caller: opaque handle of whoever invoked the command.
    """
    __slots__ = ("_positional", "_named", "_flags", "_raw", "_caller")

    def __init__(self, positional=(), named=None, flags=(), raw="", caller=None):
        self._positional = tuple(positional)
        self._named = MappingProxyType({casefold(key): value for key, value in dict(named or {}).items()})
        self._flags = frozenset(map(casefold, flags))
        self._raw = coalesce(raw, "") or ""
        self._caller = caller

    positional = mirror("positional")
    named = mirror("named")
    flags = mirror("flags")
    raw = mirror("raw")

    @property
    def caller(self):
        return self._caller

    @property
    def count(self):
        """Number of positional arguments."""
        return len(self._positional)

    def __len__(self):
        return len(self._positional)

    def get(self, index, default=Unset, parser=parse_str, /):
        """
        Positional argument at `index` converted with `parser`.

        Without a default, a missing index yields None. With a default, missing,
        empty or unparsable values yield the default.
        """
        if not 0 <= index < len(self._positional):
            return coalesce(default)
        return _convert(self._positional[index], default, parser)

    def get_named(self, key, default=Unset, parser=parse_str, /):
        """
        Named argument `key` (case-insensitive) converted with `parser`.
        """
        try:
            value = self._named[casefold(key)]
        except KeyError:
            return coalesce(default)
        return _convert(value, default, parser)

    def get_int(self, index, default=0, /):
        return self.get(index, default, parse_int)

    def get_long(self, index, default=0, /):
        return self.get(index, default, parse_long)

    def get_float(self, index, default=0.0, /):
        return self.get(index, default, parse_float)

    def get_double(self, index, default=0.0, /):
        return self.get(index, default, parse_double)

    def get_bool(self, index, default=False, /):
        return self.get(index, default, parse_bool)

    def has_flag(self, *names):
        """
        True when any of `names` was given as a flag (case-insensitive).
        """
        return any(casefold(name) in self._flags for name in names)

    def has_required(self, count, /):
        """
        True when at least `count` positional arguments are present.
        """
        return len(self._positional) >= count

    def get_rest(self, start, /):
        """
        Positional arguments from `start` to the end joined by single spaces
        ("" when `start` is out of range).
        """
        if not 0 <= start < len(self._positional):
            return ""
        return " ".join(self._positional[start:])

    def get_all(self):
        return list(self._positional)

    def get_player(self, index, roster, /):
        """
        Handle of the roster entry named by the positional at `index` (see find_caller).
        """
        return find_caller(self.get(index), roster)

    def __eq__(self, other):
        if not isinstance(other, CommandArgs):
            return NotImplemented
        return (
            self._positional == other._positional and
            self._named == other._named and
            self._flags == other._flags and
            self._raw == other._raw and
            self._caller is other._caller
        )

    __hash__ = None

    def __repr__(self):
        return "command-args(positional=%r, named=%r, flags=%r, raw=%r)" % (
            self._positional, dict(self._named), set(self._flags), self._raw
        )

    def __rich_repr__(self):
        yield "positional", self._positional
        yield "named", dict(self._named)
        yield "flags", set(self._flags)
        yield "raw", self._raw


def _convert(value, default, parser):
    if default is Unset:
        return value
    if not value:
        return default
    try:
        return parser(value)
    except (ValueError, TypeError, OverflowError):
        return default


def parse(text, caller=None, /):
    """
    Parse raw argument text into a CommandArgs (see module docstring for the rules).
    """
    if text is None:
        text = ""
    if not isinstance(text, str):
        raise TypeError("parse() first argument must be a string")

    positional = []
    named = {}
    flags = set()

    for token in tokenize(text):
        if token.startswith("--"):
            body = token[2:]
            key, separator, value = body.partition("=")
            if separator and key:
                named[key] = value
            else:
                flags.add(body)
        elif token.startswith("-") and len(token) > 1 and not token[1].isdigit():
            flags.update(token[1:])
        else:
            positional.append(token)

    return CommandArgs(positional, named, flags, text, caller)


__all__ = (
    "tokenize",
    "parse",
    "parse_str",
    "parse_int",
    "parse_long",
    "parse_float",
    "parse_double",
    "parse_bool",
    "RosterEntry",
    "Roster",
    "find_caller",
    "CommandArgs",
)
