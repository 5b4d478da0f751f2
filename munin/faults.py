"""
Munin faults (codes, exceptions and rendering).

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Resolution and permission issues never raise; they travel on a CommandResult
  (`result.code`). Configuration issues raise, because they are programming
  errors of whoever registers commands.
- CommandException: base type that carries a message + options and knows how to
  render itself through rich (header with code and title, body, hint).
- ConfigurationError: bad registration input (missing name, missing handler, ...).
- HandlerFault: an exception that escaped a command handler, wrapped with the
  command it came from. The dispatcher logs it and turns it into an Error result.

Customization
- A host may define __prog__ (program name) and __styles__ (palette overrides)
  in __main__; both are read lazily at render time.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes used across munin (stable identifiers).

    grouping (by high-level domain)
    - configuration (101xx): raised synchronously to the registering caller.
    - resolution (102xx): reported as NotFound/Error results.
    - permission (103xx): reported as NoPermission results.
    - handler (104xx): faults caught at the dispatch boundary.
    """
    # --- configuration (101xx) ---
    EMPTY_NAME          = 10101
    MISSING_HANDLER     = 10102
    EMPTY_NAMESPACE     = 10103
    NAMESPACE_REBOUND   = 10104
    INVALID_FIELD       = 10105

    # --- resolution (102xx) ---
    EMPTY_INPUT         = 10201
    UNKNOWN_COMMAND     = 10202
    UNKNOWN_SUBCOMMAND  = 10203
    UNKNOWN_HELP_TOPIC  = 10204

    # --- permission (103xx) ---
    PERMISSION_DENIED   = 10301

    # --- handler (104xx) ---
    HANDLER_FAULT       = 10401

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host can provide a __codes__ mapping in __main__ to relabel codes;
        without one the numeric value is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base for every exception munin raises or wraps.

    options
    - code: FaultCode shown in the rendered header.
    - title: short lowercase title (defaults to the code name).
    - hint: one actionable sentence.
    - colorful: render with the palette (default True).
    - fancy: render inside a rich Panel (default False).
    """

    def __init__(self, message=Unset, /, **options):
        assert message is Unset or isinstance(message, str)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.code
        title = self.options.get("title") or (code.name.replace("_", " ").lower() if code else "error")

        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", "munin"), "prog-name"),
            " — ",
            text(code.normalize() if code else "-", "code"),
            " | ",
            text(title, "error-title"),
            " ]",
        )
        body = [text(coalesce(self.message, ""), "error-message")]
        if self.hint:
            body.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(CommandException, ValueError):
    """
    raised when a command is registered with invalid input.
    """


class HandlerFault(CommandException):
    """
    an exception that escaped a command handler.

    the original exception is available as `exception` (and as __cause__ when
    raised with `from`); the failing CommandConfig as `command`.
    """

    @property
    def exception(self):
        return self.options.get("exception")

    @property
    def command(self):
        return self.options.get("command")


__all__ = (
    "FaultCode",
    "CommandException",
    "ConfigurationError",
    "HandlerFault",
)
