"""
Munin command results and their formatting.

A handler answers with exactly one of six outcome kinds, each its own class so an
outcome only carries the fields that make sense for it:

    Success(message=None)   silent when the message is None
    Error(message)
    NotFound(message)
    NoPermission(message=...)
    Info(message)
    Table(rows)             rows[0] is the header

Every result renders to the host's markup via format(): messages are wrapped in a
color marker chosen by kind, tables are laid out as aligned columns with a
highlighted header. Results also implement __rich__ so they print nicely on a
rich console.

Colors are semantic categories (success, error, warning, info, header); the hex
values live in a palette the host may override with a __colors__ mapping in
__main__.
"""
from enum import Enum, StrEnum

from rich.table import Table as RichTable
from rich.text import Text

from .faults import FaultCode
from .utils import Unset, coalesce


class ChatColor(StrEnum):
    """
    semantic color categories used by the formatter.
    """
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HEADER = "header"
    MUTED = "muted"


_PALETTE = {
    ChatColor.SUCCESS: "6BCB77",
    ChatColor.ERROR: "FF6B6B",
    ChatColor.WARNING: "FFD966",
    ChatColor.INFO: "4D96FF",
    ChatColor.HEADER: "FFD966",
    ChatColor.MUTED: "808080",
}


def palette():
    """
    Return the active category → hex mapping (defaults merged with __main__.__colors__).
    """
    overrides = getattr(__import__("__main__"), "__colors__", {})
    return _PALETTE | {ChatColor(key): value.lstrip("#") for key, value in overrides.items()}


def colorize(text, color, /, *, colorful=True):
    """
    Wrap `text` in the host's color marker for a semantic `color` category.

    With colorful=False the text is returned unchanged.
    """
    if not colorful:
        return text
    return "<color=#%s>%s</color>" % (palette()[ChatColor(color)], text)


class ResultKind(Enum):
    SUCCESS = "success"
    ERROR = "error"
    NOT_FOUND = "not-found"
    NO_PERMISSION = "no-permission"
    INFO = "info"
    TABLE = "table"


class CommandResult:
    """
    Base of every outcome. Not instantiated directly; use one of the kinds.

    Attributes
    - kind: ResultKind of the concrete class.
    - message: display message (None only for a silent Success).
    - code: optional FaultCode recorded by the dispatcher for framework failures.
    - success: True for Success, Info and Table.
    - silent: True when formatting produces no output.
    """
    __slots__ = ("_message", "_code")
    __match_args__ = ("message",)

    kind = None
    color = None
    success = False

    def __init__(self, message, /, *, code=None):
        if type(self) is CommandResult:
            raise TypeError("CommandResult cannot be instantiated directly, use one of its kinds")
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__.lower()} message must be a string")
        if code is not None and not isinstance(code, FaultCode):
            raise TypeError(f"{type(self).__name__.lower()} code must be a fault-code")
        self._message = message
        self._code = code

    @property
    def message(self):
        return self._message

    @property
    def code(self):
        return self._code

    @property
    def silent(self):
        return False

    def format(self, *, colorful=True):
        """
        Render for display; None when the result is silent.
        """
        if self.silent:
            return None
        return colorize(self.message, self.color, colorful=colorful)

    def __rich__(self):
        if self.silent:
            return Text("")
        return Text(self.message, style="#" + palette()[self.color])

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return (self.message, self.code) == (other.message, other.code)

    def __hash__(self):
        return hash((type(self), self.message, self.code))

    def __repr__(self):
        if self.code is None:
            return f"{type(self).__name__.lower()}({self.message!r})"
        return f"{type(self).__name__.lower()}({self.message!r}, code={self.code.name})"


class Success(CommandResult):
    __slots__ = ()
    kind = ResultKind.SUCCESS
    color = ChatColor.SUCCESS
    success = True

    def __init__(self, message=None, /):
        if message is None:
            # silent success: stored as None, bypassing the message check
            self._message = None
            self._code = None
            return
        super().__init__(message)

    @property
    def silent(self):
        return self.message is None


class Error(CommandResult):
    __slots__ = ()
    kind = ResultKind.ERROR
    color = ChatColor.ERROR


class NotFound(CommandResult):
    __slots__ = ()
    kind = ResultKind.NOT_FOUND
    color = ChatColor.WARNING


class NoPermission(CommandResult):
    __slots__ = ()
    kind = ResultKind.NO_PERMISSION
    color = ChatColor.ERROR

    def __init__(self, message=Unset, /, *, code=FaultCode.PERMISSION_DENIED):
        super().__init__(coalesce(message, "You don't have permission to use this command"), code=code)


class Info(CommandResult):
    __slots__ = ()
    kind = ResultKind.INFO
    color = ChatColor.INFO
    success = True


class Table(CommandResult):
    """
    Tabular outcome. Rows are sequences of cells; row 0 is the header.

    Cells are stringified (None becomes an empty cell). Rows may be ragged; the
    table is as wide as its longest row.
    """
    __slots__ = ("_rows",)
    __match_args__ = ("rows",)
    kind = ResultKind.TABLE
    color = ChatColor.HEADER
    success = True

    def __init__(self, rows, /):
        if isinstance(rows, str):
            raise TypeError("table rows must be an iterable of rows")
        self._rows = tuple(
            tuple("" if cell is None else str(cell) for cell in row) for row in rows
        )
        self._message = None
        self._code = None

    @property
    def rows(self):
        return self._rows

    @property
    def widths(self):
        """
        Width of every column: the longest cell of that column across all rows.
        """
        widths = []
        for row in self._rows:
            for index, cell in enumerate(row):
                if index == len(widths):
                    widths.append(0)
                widths[index] = max(widths[index], len(cell))
        return tuple(widths)

    def format(self, *, colorful=True):
        if not self._rows:
            return ""
        widths = self.widths
        lines = []
        for index, row in enumerate(self._rows):
            line = "  ".join(cell.ljust(widths[column]) for column, cell in enumerate(row))
            if index == 0:
                line = colorize(line, ChatColor.HEADER, colorful=colorful)
            lines.append(line)
        return "\n".join(lines)

    def __rich__(self):
        if not self._rows:
            return Text("")
        header, *body = self._rows
        table = RichTable(*header, header_style="bold #" + palette()[ChatColor.HEADER])
        for row in body:
            table.add_row(*row)
        return table

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.rows == other.rows

    def __hash__(self):
        return hash((type(self), self.rows))

    def __repr__(self):
        return f"table({self.rows!r})"


__all__ = (
    "ChatColor",
    "ResultKind",
    "CommandResult",
    "Success",
    "Error",
    "NotFound",
    "NoPermission",
    "Info",
    "Table",
    "palette",
    "colorize",
)
