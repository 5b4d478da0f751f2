from rich.console import Console as RichConsole
from rich.pretty import pprint

from munin import *
from munin import logs

__prog__ = "munin"

registry = Registry()
prefabs = SuggestionCache(lambda: ["Boar", "Wood", "SwordIron", "vfx_fire", "Boar(Clone)"])


@registry.command(usage="<prefab> [amount]", examples=["SwordIron", "Wood 100"])
def spawn(args):
    """Spawn a prefab in front of you"""
    if not args.has_required(1):
        return Error("Usage: munin spawn <prefab> [amount]")
    if args.get(0) not in prefabs.names():
        return NotFound("Prefab not found: %s" % args.get(0))
    return Success("Spawned %d x %s" % (args.get_int(1, 1), args.get(0)))


@registry.command(permission=PermissionLevel.ADMIN)
def players(args):
    """List connected players"""
    return Table([("Name", "Role"), ("odin", "host"), ("thor", "admin")])


@registry.command("veneer")
def reload(args):
    """Reload the HUD layout"""


if __name__ == '__main__':
    logs.install("DEBUG")
    console = Console(
        Dispatcher(registry, SessionEnvironment(host="odin", admins={"thor"})),
        Completer(registry, cache=prefabs),
        caller=lambda: "odin",
        output=RichConsole(highlight=False),
    )
    pprint(registry.resolve("spawn"))
    for line in ("help", "spawn Wood 5", "spawn Dragon", "players", "veneer", "bogus"):
        console.run(line.split())
    pprint(console.options("munin spawn "))
