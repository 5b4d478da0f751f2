"""
Munin dispatcher: one line of input in, one CommandResult out.

Routing (first token, case-insensitive)
1. "help"            -> help sub-flow (reserved, always wins)
2. a built-in name   -> run the built-in with the remainder
3. a namespace name  -> next token is the sub-command; none or "help" lists the
                        namespace, otherwise run it or answer NotFound
4. anything else     -> NotFound naming the token as typed

Running a command
- the permission gate is consulted first; a denial never parses arguments nor
  calls the handler.
- the remainder is parsed into CommandArgs and handed to the handler.
- a handler returning None is a silent Success.
- any exception escaping the handler is logged and becomes an Error result.

execute() never raises.
"""
import logging

from .arguments import parse
from .faults import FaultCode, HandlerFault
from .permissions import PermissionLevel, has_permission, permission_name
from .results import ChatColor, CommandResult, Error, Info, NoPermission, NotFound, Success, colorize
from .utils import Unset, casefold, coalesce, pluralize

log = logging.getLogger(__name__)

_HELP = "help"


def _split(text):
    """
    Split on the first whitespace run: ("first", "rest"); ("", "") for blank text.
    """
    parts = text.strip().split(None, 1)
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


class Dispatcher:
    """
    Route raw input to registered commands and produce results.

    Parameters
    - registry: Registry holding the commands.
    - environment: permission policy (see munin.permissions.Environment); None
      denies every privileged command.
    - prog: program name used in help and hints; defaults to __main__.__prog__
      or "munin".
    - colorful: embed color markers in help listings.
    """

    def __init__(self, registry, environment=None, /, *, prog=Unset, colorful=True):
        self.registry = registry
        self.environment = environment
        self._prog = prog
        self.colorful = colorful

    @property
    def prog(self):
        return coalesce(self._prog, getattr(__import__("__main__"), "__prog__", "munin"))

    def execute(self, text, caller=None, /):
        """
        Execute one line of input (without the program name) on behalf of `caller`.
        """
        try:
            return self._route(text, caller)
        except Exception as exception:
            log.exception("dispatch failed for %r", text)
            return Error("Error executing command: %s" % exception, code=FaultCode.HANDLER_FAULT)

    def _route(self, text, caller):
        if text is None:
            text = ""
        if not isinstance(text, str):
            raise TypeError("execute() input must be a string, got %s" % type(text).__name__)

        first, rest = _split(text)
        if not first:
            return Error(
                "No command specified. Type '%s help' for available commands." % self.prog,
                code=FaultCode.EMPTY_INPUT,
            )
        key = casefold(first)

        if key == _HELP:
            return self.help(rest, caller)

        if (config := self.registry.resolve(key)) is not None:
            return self.run(config, rest, caller)

        if self.registry.is_namespace(key):
            name, remainder = _split(rest)
            if not name or casefold(name) == _HELP:
                return self._namespace_help(key, caller)
            if (config := self.registry.resolve(key, name)) is not None:
                return self.run(config, remainder, caller)
            return NotFound(
                "Unknown command: %s %s. Type '%s %s help' for available commands." % (
                    first, name, self.prog, key
                ),
                code=FaultCode.UNKNOWN_SUBCOMMAND,
            )

        return NotFound(
            "Unknown command or mod: %s. Type '%s help' for available commands." % (first, self.prog),
            code=FaultCode.UNKNOWN_COMMAND,
        )

    def run(self, config, text, caller=None, /):
        """
        Gate, parse and invoke a single resolved command.
        """
        if not has_permission(caller, config.permission, self.environment):
            return NoPermission()

        try:
            result = config(parse(text, caller))
        except Exception as exception:
            fault = HandlerFault(
                "command %r raised %s" % (config.prefix, type(exception).__name__),
                code=FaultCode.HANDLER_FAULT,
                command=config,
                exception=exception,
            )
            log.exception("%s", fault)
            return Error("Error executing command: %s" % exception, code=FaultCode.HANDLER_FAULT)

        match result:
            case None:
                return Success()
            case CommandResult():
                return result
            case _:
                log.error("command %r returned %s instead of a result", config.prefix, type(result).__name__)
                return Error(
                    "Error executing command: %s returned no result" % config.prefix,
                    code=FaultCode.HANDLER_FAULT,
                )

    # ── help ───────────────────────────────────────────────────────────────

    def help(self, text="", caller=None, /):
        """
        Help sub-flow.

        - ""                    general listing
        - "<builtin>"           command detail
        - "<namespace>"         namespace listing
        - "<namespace> <name>"  command detail
        """
        topic = text.strip() if isinstance(text, str) else ""
        if not topic:
            return self._general_help(caller)

        key = casefold(topic)
        if (config := self.registry.resolve(key)) is not None:
            return self._command_help(config)
        if self.registry.is_namespace(key):
            return self._namespace_help(key, caller)

        namespace, name = _split(topic)
        if name and (config := self.registry.resolve(namespace, name)) is not None:
            return self._command_help(config)

        return NotFound("Unknown command or mod: %s" % topic, code=FaultCode.UNKNOWN_HELP_TOPIC)

    def _paint(self, text, color):
        return colorize(text, color, colorful=self.colorful)

    def _visible(self, configs, caller):
        return sorted(
            (
                config for config in configs
                if not config.hidden and has_permission(caller, config.permission, self.environment)
            ),
            key=lambda config: config.key,
        )

    def _listing(self, config):
        tag = ""
        if config.permission is not PermissionLevel.ANYONE:
            tag = " " + self._paint("[%s]" % permission_name(config.permission), ChatColor.WARNING)
        return "  %s %s%s - %s" % (self.prog, config.prefix, tag, coalesce(config.descr) or "No description")

    def _general_help(self, caller):
        lines = [self._paint("Munin Command System", ChatColor.HEADER), ""]

        if visible := self._visible(self.registry.builtin_configs(), caller):
            lines.append(self._paint("Built-in Commands:", ChatColor.HEADER))
            lines.extend(map(self._listing, visible))
            lines.append("")

        if namespaces := sorted(self.registry.namespaces()):
            lines.append(self._paint("Registered Mods:", ChatColor.HEADER))
            for namespace in namespaces:
                count = len(self.registry.namespace_commands(namespace))
                lines.append("  %s %s ... (%d %s)" % (self.prog, namespace, count, pluralize("command", count)))
            lines.append("")

        lines.append("Type '%s help <command>' or '%s <mod> help' for details" % (self.prog, self.prog))
        return Info("\n".join(lines))

    def _namespace_help(self, namespace, caller):
        lines = [self._paint("%s Commands:" % namespace, ChatColor.HEADER), ""]
        if visible := self._visible(self.registry.namespace(namespace), caller):
            lines.extend(map(self._listing, visible))
        else:
            lines.append("  No commands available")
        return Info("\n".join(lines))

    def _command_help(self, config):
        prefix = "%s %s" % (self.prog, config.prefix)
        lines = [self._paint(prefix, ChatColor.HEADER)]

        if config.descr:
            lines.append(config.descr)
        if config.usage:
            lines.append("")
            lines.append("%s %s %s" % (self._paint("Usage:", ChatColor.INFO), prefix, config.usage))
        if config.permission is not PermissionLevel.ANYONE:
            lines.append("%s %s" % (self._paint("Permission:", ChatColor.WARNING), permission_name(config.permission)))
        if config.examples:
            lines.append("")
            lines.append(self._paint("Examples:", ChatColor.INFO))
            lines.extend("  %s %s" % (prefix, example) for example in config.examples)

        return Info("\n".join(lines))

    def __repr__(self):
        return "dispatcher(prog=%r, registry=%r)" % (self.prog, self.registry)


__all__ = (
    "Dispatcher",
)
