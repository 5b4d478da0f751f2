"""
Dispatcher behavioral tests (routing, gate, handler faults, help).

Scope
- Validate routing: empty input, reserved help, built-ins, namespaces, NotFound.
- Validate the permission gate runs before parsing and before the handler.
- Validate handler faults and odd return values become results (never raise).
- Validate the help listings and command detail text.

Conventions
- Test method names follow CamelCase per project convention.
- Help text is checked with colorful=False to compare plain strings.
"""

from __future__ import annotations

import unittest
from unittest import TestCase
from unittest.mock import patch

from munin import (
    CommandConfig,
    Dispatcher,
    Error,
    FaultCode,
    Info,
    NoPermission,
    NotFound,
    PermissionLevel,
    Registry,
    SessionEnvironment,
    Success,
)


class Recorder:
    """Handler fake that counts calls and keeps the last arguments."""

    def __init__(self, result=None):
        self.result = result
        self.calls = []

    def __call__(self, args):
        self.calls.append(args)
        return self.result


def explode(args):
    raise RuntimeError("boom")


class TestExecute(TestCase):
    """Behavioral tests for routing and execution."""

    def setUp(self):
        self.registry = Registry()
        self.ping = Recorder(Success("pong"))
        self.secret = Recorder(Info("classified"))
        self.reload = Recorder(Success("reloaded"))
        self.registry.register(CommandConfig("ping", self.ping, "Reply with pong"))
        self.registry.register(CommandConfig("secret", self.secret, permission=PermissionLevel.ADMIN))
        self.registry.register("veneer", CommandConfig("reload", self.reload))
        self.environment = SessionEnvironment(host="odin", admins={"thor"})
        self.dispatcher = Dispatcher(self.registry, self.environment, prog="munin", colorful=False)

    def testEmptyInput(self):
        for text in ("", "   ", None):
            result = self.dispatcher.execute(text, "loki")
            self.assertIsInstance(result, Error)
            self.assertIs(result.code, FaultCode.EMPTY_INPUT)
            self.assertIn("munin help", result.message)

    def testBuiltinIsCaseInsensitive(self):
        self.assertEqual(self.dispatcher.execute("PING", "loki"), Success("pong"))
        self.assertEqual(len(self.ping.calls), 1)

    def testArgumentsReachHandler(self):
        self.dispatcher.execute("ping   a  b --x", "loki")
        args, = self.ping.calls
        self.assertEqual(args.positional, ("a", "b"))
        self.assertTrue(args.has_flag("x"))
        self.assertEqual(args.raw, "a  b --x")
        self.assertEqual(args.caller, "loki")

    def testHelpIsReserved(self):
        shadow = Recorder(Success("shadowed"))
        self.registry.register(CommandConfig("help", shadow))
        result = self.dispatcher.execute("HELP", "loki")
        self.assertIsInstance(result, Info)
        self.assertEqual(shadow.calls, [])

    def testNamespacedCommand(self):
        self.assertEqual(self.dispatcher.execute("Veneer RELOAD now", "loki"), Success("reloaded"))
        args, = self.reload.calls
        self.assertEqual(args.positional, ("now",))

    def testNamespaceWithoutSubcommandListsIt(self):
        for text in ("veneer", "veneer help", "VENEER  Help"):
            result = self.dispatcher.execute(text, "loki")
            self.assertIsInstance(result, Info)
            self.assertTrue(result.message.startswith("veneer Commands:"))
        self.assertEqual(self.reload.calls, [])

    def testUnknownSubcommand(self):
        result = self.dispatcher.execute("veneer Nope", "loki")
        self.assertIsInstance(result, NotFound)
        self.assertIs(result.code, FaultCode.UNKNOWN_SUBCOMMAND)
        self.assertIn("Nope", result.message)
        self.assertIn("munin veneer help", result.message)

    def testUnknownCommandNamesTokenVerbatim(self):
        result = self.dispatcher.execute("Bogus stuff", "loki")
        self.assertIsInstance(result, NotFound)
        self.assertIs(result.code, FaultCode.UNKNOWN_COMMAND)
        self.assertIn("Bogus", result.message)

    def testPermissionDeniedSkipsParsingAndHandler(self):
        with patch("munin.dispatch.parse") as parse:
            result = self.dispatcher.execute("secret --flag", "loki")
        self.assertIsInstance(result, NoPermission)
        self.assertIs(result.code, FaultCode.PERMISSION_DENIED)
        parse.assert_not_called()
        self.assertEqual(self.secret.calls, [])

    def testPermissionGranted(self):
        self.assertEqual(self.dispatcher.execute("secret", "thor"), Info("classified"))
        self.assertEqual(self.dispatcher.execute("secret", "odin"), Info("classified"))

    def testAbsentCallerIsDenied(self):
        self.assertIsInstance(self.dispatcher.execute("secret"), NoPermission)
        self.assertEqual(self.secret.calls, [])

    def testAbsentCallerIsDeniedForAnyoneCommands(self):
        with patch("munin.dispatch.parse") as parse:
            result = self.dispatcher.execute("ping hello", None)
        self.assertIsInstance(result, NoPermission)
        parse.assert_not_called()
        self.assertEqual(self.ping.calls, [])
        self.assertEqual(self.dispatcher.execute("ping", "loki"), Success("pong"))
        self.assertEqual(len(self.ping.calls), 1)

    def testHandlerFaultBecomesError(self):
        self.registry.register(CommandConfig("explode", explode))
        with self.assertLogs("munin.dispatch", "ERROR"):
            result = self.dispatcher.execute("explode", "loki")
        self.assertEqual(result, Error("Error executing command: boom", code=FaultCode.HANDLER_FAULT))

    def testNoneReturnIsSilentSuccess(self):
        self.registry.register(CommandConfig("quiet", Recorder()))
        result = self.dispatcher.execute("quiet", "loki")
        self.assertIsInstance(result, Success)
        self.assertIsNone(result.format())

    def testNonResultReturnIsError(self):
        self.registry.register(CommandConfig("odd", Recorder(42)))
        with self.assertLogs("munin.dispatch", "ERROR"):
            result = self.dispatcher.execute("odd", "loki")
        self.assertIsInstance(result, Error)
        self.assertIs(result.code, FaultCode.HANDLER_FAULT)

    def testNothingEscapes(self):
        class BrokenRegistry(Registry):
            def resolve(self, *parameters):
                raise RuntimeError("corrupted")

        dispatcher = Dispatcher(BrokenRegistry(), prog="munin")
        with self.assertLogs("munin.dispatch", "ERROR"):
            result = dispatcher.execute("ping", "loki")
        self.assertIsInstance(result, Error)

    def testNonStringInputIsError(self):
        with self.assertLogs("munin.dispatch", "ERROR"):
            self.assertIsInstance(self.dispatcher.execute(42, "loki"), Error)

    def testProgFromMain(self):
        import sys
        with patch.object(sys.modules["__main__"], "__prog__", "odin", create=True):
            dispatcher = Dispatcher(self.registry)
            self.assertEqual(dispatcher.prog, "odin")
            self.assertIn("odin help", dispatcher.execute("").message)


class TestHelp(TestCase):
    """Behavioral tests for the help sub-flow."""

    def setUp(self):
        self.registry = Registry()
        self.registry.register(CommandConfig(
            "ping", lambda args: None, "Reply with pong", "[message]", examples=["", "hello"],
        ))
        self.registry.register(CommandConfig(
            "secret", lambda args: None, "Top secret", permission=PermissionLevel.ADMIN,
        ))
        self.registry.register(CommandConfig("ghost", lambda args: None, "Invisible", hidden=True))
        self.registry.register("veneer", CommandConfig("reload", lambda args: None))
        self.registry.register("vault", CommandConfig("open", lambda args: None, permission=PermissionLevel.HOST))
        self.registry.register("vault", CommandConfig("close", lambda args: None, permission=PermissionLevel.HOST))
        self.dispatcher = Dispatcher(
            self.registry, SessionEnvironment(host="odin", admins={"thor"}), prog="munin", colorful=False,
        )

    def testGeneralListing(self):
        result = self.dispatcher.execute("help", "loki")
        self.assertIsInstance(result, Info)
        self.assertEqual(
            result.message,
            "Munin Command System\n"
            "\n"
            "Built-in Commands:\n"
            "  munin ping - Reply with pong\n"
            "\n"
            "Registered Mods:\n"
            "  munin vault ... (2 commands)\n"
            "  munin veneer ... (1 command)\n"
            "\n"
            "Type 'munin help <command>' or 'munin <mod> help' for details",
        )

    def testGeneralListingFiltersByPermission(self):
        message = self.dispatcher.execute("help", "thor").message
        self.assertIn("  munin secret [Admin] - Top secret", message)
        self.assertNotIn("ghost", message)
        self.assertLess(message.index("munin ping"), message.index("munin secret"))

    def testBuiltinDetail(self):
        result = self.dispatcher.execute("help PING", "loki")
        self.assertEqual(
            result.message,
            "munin ping\n"
            "Reply with pong\n"
            "\n"
            "Usage: munin ping [message]\n"
            "\n"
            "Examples:\n"
            "  munin ping \n"
            "  munin ping hello",
        )

    def testPermissionLine(self):
        message = self.dispatcher.execute("help secret", "loki").message
        self.assertEqual(message, "munin secret\nTop secret\nPermission: Admin")

    def testNamespacedDetail(self):
        message = self.dispatcher.execute("help veneer reload", "loki").message
        self.assertEqual(message, "munin veneer reload")

    def testNamespaceListing(self):
        message = self.dispatcher.execute("help veneer", "loki").message
        self.assertEqual(message, "veneer Commands:\n\n  munin veneer reload - No description")

    def testNamespaceListingWithNothingVisible(self):
        message = self.dispatcher.execute("vault", "thor").message
        self.assertEqual(message, "vault Commands:\n\n  No commands available")
        message = self.dispatcher.execute("vault help", "odin").message
        self.assertIn("  munin vault close [Host] - No description", message)
        self.assertLess(message.index("close"), message.index("open"))

    def testUnknownTopic(self):
        for text in ("help nothing", "help veneer nothing"):
            result = self.dispatcher.execute(text, "loki")
            self.assertIsInstance(result, NotFound)
            self.assertIs(result.code, FaultCode.UNKNOWN_HELP_TOPIC)

    def testColorfulListing(self):
        dispatcher = Dispatcher(self.registry, SessionEnvironment(single_player=True), prog="munin")
        message = dispatcher.execute("help", "anyone").message
        self.assertTrue(message.startswith("<color=#FFD966>Munin Command System</color>"))
        self.assertIn("  munin secret <color=#FFD966>[Admin]</color> - Top secret", message)


if __name__ == "__main__":
    unittest.main()
