"""
Munin tab completion.

The host console asks for suggestions on every keystroke with the whole line typed
so far ("munin spawn Bo"). The Completer infers which argument the cursor is in
from whitespace alone and returns the full candidate set for that position; the
console filters by the partial token itself.

Position = number of whitespace runs in the line (leading whitespace ignored):

    "munin"            0   first-level options
    "munin sp"         1   first-level options
    "munin spawn "     2   the trigger's source, the namespace's commands,
                           or the first-level options for any other word
    "munin spawn a b"  3   nothing

Spawnable names come from a SuggestionCache: built lazily from every source on
first demand, cleared wholesale by invalidate(), rebuilt on the next demand.
"""
import logging
import re
import threading
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from .arguments import parse_int
from .utils import Unset, casefold, coalesce

log = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

_EFFECT_PREFIXES = ("vfx_", "sfx_", "fx_")


@runtime_checkable
class SuggestionSource(Protocol):
    """
    host collaborator enumerating candidate names (e.g. every spawnable prefab).
    """

    def enumerate_names(self) -> Iterable[str]: ...


def is_spawnable(name, /):
    """
    Return True when `name` is worth suggesting as a spawnable object.

    Rejected: empty names, runtime clones ("(Clone)"), localization tokens ("$..."),
    internal names ("_..."), effects ("vfx_", "sfx_", "fx_"), integers and names
    shorter than two characters.
    """
    if not isinstance(name, str) or not name:
        return False
    if "(Clone)" in name:
        return False
    if name.startswith(("$", "_")):
        return False
    if name.startswith(_EFFECT_PREFIXES):
        return False
    try:
        parse_int(name)
    except ValueError:
        pass
    else:
        return False
    return len(name) >= 2


def _enumerate(source):
    if isinstance(source, SuggestionSource):
        return source.enumerate_names()
    if callable(source):
        return source()
    raise TypeError("suggestion source must implement enumerate_names() or be callable")


class SuggestionCache:
    """
    Lazily built, wholesale-invalidated list of spawnable names.

    - names(): the sorted, de-duplicated, filtered names; builds on first call and
      after every invalidate().
    - invalidate(): drop the cached list (idempotent).

    A source that raises while enumerating is logged and skipped; the others still
    contribute.
    """

    def __init__(self, *sources):
        self._sources = list(sources)
        self._names = None
        self._lock = threading.RLock()

    @property
    def built(self):
        return self._names is not None

    def add_source(self, source, /):
        """
        Add a source; the cache is invalidated so the next demand includes it.
        """
        with self._lock:
            self._sources.append(source)
            self._names = None

    def names(self):
        with self._lock:
            if self._names is None:
                self._names = self._build()
            return list(self._names)

    def invalidate(self):
        with self._lock:
            if self._names is not None:
                log.debug("suggestion cache invalidated (%d names dropped)", len(self._names))
            self._names = None

    def _build(self):
        names = set()
        for source in self._sources:
            try:
                batch = list(filter(is_spawnable, _enumerate(source)))
            except Exception as exception:
                log.warning("error enumerating suggestion source %r: %s", source, exception)
                continue
            names.update(batch)
        names = tuple(sorted(names))
        log.debug("suggestion cache rebuilt with %d names", len(names))
        return names

    def __len__(self):
        return len(self.names())

    def __repr__(self):
        return "suggestion-cache(sources=%d, built=%r)" % (len(self._sources), self.built)


class Completer:
    """
    Context-sensitive suggestions for the host console.

    Parameters
    - registry: Registry to complete command and namespace names from.
    - prog: the console command name, first word of every line (informational).
    - cache: SuggestionCache backing the "spawn" trigger.
    - roster: Roster backing the "teleport" trigger (live, never cached).
    - triggers: extra mapping of command name -> callable returning candidate
      names; entries override the defaults.
    """

    def __init__(self, registry, /, *, prog=Unset, cache=None, roster=None, triggers=None):
        self.registry = registry
        self._prog = prog
        self.cache = cache if cache is not None else SuggestionCache()
        self.roster = roster
        self.triggers = {
            "spawn": self.cache.names,
            "teleport": self._roster_names,
        } | {casefold(name): source for name, source in dict(triggers or {}).items()}

    @property
    def prog(self):
        return coalesce(self._prog, getattr(__import__("__main__"), "__prog__", "munin"))

    def _roster_names(self):
        if self.roster is None:
            return []
        return [entry.name for entry in self.roster.enumerate_active_callers() if entry.name]

    @staticmethod
    def position(text, /):
        """
        Cursor argument position of `text`: whitespace runs after the leading ones.
        """
        return len(_WHITESPACE.findall(text.lstrip()))

    def first_level(self):
        """
        Built-in names, "help" and namespace names, sorted.
        """
        return sorted({*self.registry.builtins(), "help", *self.registry.namespaces()})

    def suggest(self, text, /):
        """
        Return every candidate for the argument under the cursor (unfiltered).
        """
        if not isinstance(text, str):
            return self.first_level()

        position = self.position(text)
        if position <= 1:
            return self.first_level()
        if position != 2:
            return []

        tokens = text.split()
        if len(tokens) < 2:
            return []
        first = casefold(tokens[1])

        if (source := self.triggers.get(first)) is not None:
            try:
                return sorted(source())
            except Exception as exception:
                log.warning("error collecting suggestions for %r: %s", first, exception)
                return []
        if self.registry.is_namespace(first):
            return sorted(self.registry.namespace_commands(first))
        return self.first_level()

    def invalidate(self):
        """
        Forward to the cache: call when the host registers new spawnable objects.
        """
        self.cache.invalidate()

    def __repr__(self):
        return "completer(prog=%r, triggers=%r)" % (self.prog, sorted(self.triggers))


__all__ = (
    "SuggestionSource",
    "SuggestionCache",
    "Completer",
    "is_spawnable",
)
