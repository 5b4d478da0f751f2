"""
Completion engine behavioral tests (position inference, triggers, cache).

Scope
- Validate cursor position inference from whitespace runs.
- Validate first-level, trigger and namespace candidate sets.
- Validate the suggestion cache: filtering, lazy build, one rebuild per
  invalidation, failing sources.

Conventions
- Test method names follow CamelCase per project convention.
- Sources are counting fakes so rebuilds are observable.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from munin import (
    CommandConfig,
    Completer,
    Registry,
    RosterEntry,
    SuggestionCache,
    is_spawnable,
)


class CountingSource:
    """Suggestion source fake counting enumerate_names() calls."""

    def __init__(self, *names):
        self.names = list(names)
        self.calls = 0

    def enumerate_names(self):
        self.calls += 1
        return iter(self.names)


class FailingSource:
    def enumerate_names(self):
        raise RuntimeError("object database not loaded")


class PartialSource:
    """Suggestion source fake that fails after yielding some names."""

    def enumerate_names(self):
        yield "Troll"
        yield "Deer"
        raise RuntimeError("object database unloaded mid-scan")


class StaticRoster:
    def __init__(self, *names):
        self.names = names

    def enumerate_active_callers(self):
        return [RosterEntry(name, index) for index, name in enumerate(self.names)]


def handler(args):
    return None


class TestSpawnable(TestCase):
    """Behavioral tests for the spawnable-name filter."""

    def testAccepted(self):
        for name in ("Boar", "SwordIron", "ab", "Wood2", "99Luftballons"):
            self.assertTrue(is_spawnable(name), name)

    def testRejected(self):
        for name in ("", "a", "Boar(Clone)", "$item_sword", "_Hidden", "vfx_fire", "sfx_hit", "fx_smoke", "123", "-5"):
            self.assertFalse(is_spawnable(name), name)
        self.assertFalse(is_spawnable(None))


class TestSuggestionCache(TestCase):
    """Behavioral tests for the lazily built cache."""

    def testBuildFiltersDeduplicatesAndSorts(self):
        cache = SuggestionCache(
            CountingSource("Wood", "Boar", "vfx_fire", "_x", "1"),
            CountingSource("Boar", "Stone", "Boar(Clone)"),
        )
        self.assertEqual(cache.names(), ["Boar", "Stone", "Wood"])

    def testLazyBuildAndOneRebuildPerInvalidation(self):
        source = CountingSource("Boar")
        cache = SuggestionCache(source)
        self.assertFalse(cache.built)
        self.assertEqual(source.calls, 0)
        cache.names()
        cache.names()
        self.assertEqual(source.calls, 1)
        cache.invalidate()
        cache.invalidate()
        self.assertEqual(source.calls, 1)
        cache.names()
        cache.names()
        self.assertEqual(source.calls, 2)

    def testInvalidationSeesNewNames(self):
        source = CountingSource("Boar")
        cache = SuggestionCache(source)
        self.assertEqual(cache.names(), ["Boar"])
        source.names.append("Troll")
        self.assertEqual(cache.names(), ["Boar"])
        cache.invalidate()
        self.assertEqual(cache.names(), ["Boar", "Troll"])

    def testFailingSourceIsSkipped(self):
        cache = SuggestionCache(FailingSource(), CountingSource("Boar"))
        with self.assertLogs("munin.completion", "WARNING"):
            self.assertEqual(cache.names(), ["Boar"])

    def testPartiallyFailingSourceContributesNothing(self):
        cache = SuggestionCache(PartialSource(), CountingSource("Boar"))
        with self.assertLogs("munin.completion", "WARNING"):
            self.assertEqual(cache.names(), ["Boar"])

    def testCallableSource(self):
        cache = SuggestionCache(lambda: ["Wolf", "Deer"])
        self.assertEqual(cache.names(), ["Deer", "Wolf"])

    def testAddSourceInvalidates(self):
        cache = SuggestionCache(CountingSource("Boar"))
        cache.names()
        cache.add_source(CountingSource("Neck"))
        self.assertEqual(cache.names(), ["Boar", "Neck"])


class TestCompleter(TestCase):
    """Behavioral tests for suggest()."""

    def setUp(self):
        self.registry = Registry()
        for name in ("Spawn", "teleport", "ping"):
            self.registry.register(CommandConfig(name, handler))
        self.registry.register_many("veneer", CommandConfig("reload", handler), CommandConfig("layout", handler))
        self.source = CountingSource("Wood", "Boar", "vfx_fire")
        self.completer = Completer(
            self.registry,
            cache=SuggestionCache(self.source),
            roster=StaticRoster("Warrior", "Viking"),
        )

    def testPosition(self):
        self.assertEqual(Completer.position("munin"), 0)
        self.assertEqual(Completer.position("munin "), 1)
        self.assertEqual(Completer.position("munin sp"), 1)
        self.assertEqual(Completer.position("  munin   spawn "), 2)
        self.assertEqual(Completer.position("munin spawn Bo"), 2)
        self.assertEqual(Completer.position("munin spawn Boar "), 3)

    def testFirstLevel(self):
        expected = ["help", "ping", "spawn", "teleport", "veneer"]
        for text in ("", "munin", "munin ", "munin sp", "munin xyz"):
            self.assertEqual(self.completer.suggest(text), expected, text)

    def testSpawnTriggerUsesCache(self):
        self.assertEqual(self.completer.suggest("munin spawn "), ["Boar", "Wood"])
        self.assertEqual(self.completer.suggest("munin SPAWN Bo"), ["Boar", "Wood"])
        self.assertEqual(self.source.calls, 1)

    def testTeleportTriggerUsesRoster(self):
        self.assertEqual(self.completer.suggest("munin teleport "), ["Viking", "Warrior"])

    def testNamespaceCommands(self):
        self.assertEqual(self.completer.suggest("munin veneer "), ["layout", "reload"])
        self.assertEqual(self.completer.suggest("munin Veneer re"), ["layout", "reload"])

    def testDeeperPositionsAreEmpty(self):
        self.assertEqual(self.completer.suggest("munin spawn Boar "), [])
        self.assertEqual(self.completer.suggest("munin veneer reload x"), [])

    def testOtherFirstTokenFallsBackToFirstLevel(self):
        expected = self.completer.first_level()
        self.assertEqual(self.completer.suggest("munin help "), expected)
        self.assertEqual(self.completer.suggest("munin ping "), expected)
        self.assertEqual(self.completer.suggest("munin nope x"), expected)
        self.assertEqual(self.completer.suggest("munin help ping "), [])

    def testRebuildCounter(self):
        self.completer.suggest("munin ")
        self.completer.suggest("munin veneer ")
        self.assertEqual(self.source.calls, 0)
        self.completer.suggest("munin spawn ")
        self.completer.suggest("munin spawn ")
        self.assertEqual(self.source.calls, 1)
        self.completer.invalidate()
        self.assertEqual(self.source.calls, 1)
        self.completer.suggest("munin spawn ")
        self.completer.suggest("munin spawn W")
        self.assertEqual(self.source.calls, 2)

    def testCustomTriggers(self):
        completer = Completer(self.registry, triggers={"Give": lambda: ["b", "a"]})
        self.assertEqual(completer.suggest("munin give "), ["a", "b"])
        self.assertEqual(completer.suggest("munin teleport "), [])
        self.assertEqual(completer.suggest("munin spawn "), [])

    def testFailingTriggerIsEmpty(self):
        def broken():
            raise RuntimeError("no world")

        completer = Completer(self.registry, triggers={"spawn": broken})
        with self.assertLogs("munin.completion", "WARNING"):
            self.assertEqual(completer.suggest("munin spawn "), [])


if __name__ == "__main__":
    unittest.main()
