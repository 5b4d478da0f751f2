"""
Munin console adapter.

The host console knows a single command, `munin`, and hands it the words typed
after it. Console joins them back into one line, dispatches it for the current
caller, prints the formatted result and mirrors it to chat.
"""
from rich.console import Console as RichConsole
from rich.text import Text


class Console:
    """
    The `munin` console command.

    Parameters
    - dispatcher: Dispatcher executing the joined line.
    - completer: Completer answering options().
    - caller: zero-argument callable returning the current caller handle
      (the local player); None when there is no caller.
    - echo: optional callable receiving every printed line (chat mirror).
    - colorful: keep color markers in the formatted text.
    - output: rich Console to print to (a fresh stdout console by default).
    """

    help = "munin command system. type 'munin help' for available commands."

    def __init__(self, dispatcher, completer=None, /, *, caller=None, echo=None, colorful=True, output=None):
        self.dispatcher = dispatcher
        self.completer = completer
        self.caller = caller
        self.echo = echo
        self.colorful = colorful
        self.output = output if output is not None else RichConsole(highlight=False)

    @property
    def name(self):
        return self.dispatcher.prog

    def run(self, argv=(), /):
        """
        Execute the words typed after the command name.

        Returns the formatted text, or None when the result is silent.
        """
        if isinstance(argv, str):
            argv = argv.split()
        line = " ".join(argv)
        caller = self.caller() if self.caller is not None else None

        result = self.dispatcher.execute(line, caller)
        text = result.format(colorful=self.colorful)
        if not text:
            return None

        self.output.print(Text(text))
        if self.echo is not None:
            self.echo(text)
        return text

    def options(self, text=""):
        """
        Completion candidates for the line typed so far (see Completer.suggest).
        """
        if self.completer is None:
            return []
        return self.completer.suggest(text)

    __call__ = run

    def __repr__(self):
        return "console(name=%r)" % self.name


__all__ = (
    "Console",
)
