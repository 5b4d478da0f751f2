"""
Munin command layer: descriptors and the registry that owns them.

What this module provides
- CommandConfig: immutable descriptor of a registered command (name, description,
  usage, permission level, handler, examples, hidden flag) plus the owning
  namespace tag, which the Registry sets exactly once.
- command(...): build a CommandConfig from a function, or return a decorator that
  does (name from __name__, description from the docstring).
- Registry: two-tier command table.
  • built-ins, invoked as `munin <name>`
  • namespaced ("mod") commands, invoked as `munin <namespace> <name>`
  All names are compared case-insensitively and stored lower-cased. A namespace
  is known exactly while it holds at least one command.

Registration contract
- empty names and missing handlers raise ConfigurationError right away.
- re-registering a name overwrites the previous entry and logs a warning.
- every unregister flavor is a no-op for unknown keys.

Quick start
    from munin import Registry, command, Info, PermissionLevel

    registry = Registry()

    @registry.command(permission=PermissionLevel.ADMIN, usage="<x> <y> <z>")
    def teleport(args):
        "Teleport to coordinates"
        return Info("going to %s" % args.get_rest(0))

    @registry.command("veneer")
    def reload(args):
        "Reload the HUD layout"

Concurrency
- The registry guards its tables with one re-entrant lock, so hosts that dispatch
  from several threads can share an instance.
"""
import functools
import inspect
import logging
import operator
import re
import threading
from collections.abc import Iterable

from rich.text import Text

from .faults import ConfigurationError, FaultCode
from .permissions import PermissionLevel
from .utils import Unset, casefold, coalesce, mirror, rename

log = logging.getLogger(__name__)


class ConfigType(type):
    """
    Metaclass giving descriptors read-only mirrored fields and stable reprs.

    - every name listed in __introspectable__ becomes a property over "_{name}".
    - __typename__ is the hyphenated lower-case class name ("command-config").
    - __repr__ / __rich_repr__ list the introspectable fields.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                if name != "handler":
                    yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _process_strings(cls, metadata):
    """
    Validate and trim the scalar string fields; Unset becomes None.

    The name is kept even when blank: the registry is the one that rejects it.
    """
    for name in ("name", "descr", "usage"):
        if (object := metadata[name]) is not Unset and not isinstance(object, str | Text):
            raise ConfigurationError(
                f"{cls.__typename__} {name!r} must be a string",
                code=FaultCode.INVALID_FIELD,
                hint="pass a plain string",
            )
        if isinstance(object, Text):
            object = object.plain
        if isinstance(object, str):
            object = object.strip()
            if not object and name != "name":
                object = Unset
        metadata[name] = coalesce(object)
    metadata["name"] = metadata["name"] or ""


def _process_examples(cls, metadata):
    """
    Validate examples: an iterable of strings, trimmed, stored as a tuple.

    Unlike other fields, an example may be empty: "" documents the bare command.
    """
    if isinstance(examples := metadata["examples"], str) or not isinstance(examples, Iterable):
        raise ConfigurationError(
            f"{cls.__typename__} 'examples' must be an iterable of strings",
            code=FaultCode.INVALID_FIELD,
            hint="wrap a single example in a list",
        )
    sanitized = []
    for example in examples:
        if not isinstance(example, str):
            raise ConfigurationError(
                f"{cls.__typename__} 'examples' must be an iterable of strings",
                code=FaultCode.INVALID_FIELD,
                hint="every example is a line of arguments, as typed after the command",
            )
        sanitized.append(example.strip())
    metadata["examples"] = tuple(sanitized)


def _process_semantics(cls, metadata):
    if metadata["handler"] is not None and not callable(metadata["handler"]):
        raise ConfigurationError(
            f"{cls.__typename__} 'handler' must be callable",
            code=FaultCode.MISSING_HANDLER,
            hint="pass a function taking the parsed arguments",
        )
    try:
        metadata["permission"] = PermissionLevel(metadata["permission"])
    except ValueError:
        raise ConfigurationError(
            f"{cls.__typename__} 'permission' must be a permission level",
            code=FaultCode.INVALID_FIELD,
            hint="use PermissionLevel.ANYONE, ADMIN or HOST",
        ) from None
    metadata["hidden"] = bool(metadata["hidden"])


class CommandConfig(metaclass=ConfigType):
    """
    Registered command descriptor.

    Fields are read-only after construction; the only late-bound field is
    `namespace`, which the Registry assigns once when the command is registered
    under a namespace (None for built-ins).
    """

    __introspectable__ = (
        "name",
        "descr",
        "usage",
        "permission",
        "handler",
        "examples",
        "namespace",
        "hidden",
    )

    def __init__(
            self,
            name,
            /,
            handler=None,
            descr=Unset,
            usage=Unset,
            permission=PermissionLevel.ANYONE,
            examples=(),
            *,
            hidden=False
    ):
        """
        Parameters
        - name: str
          Command name as shown in help; looked up case-insensitively.
        - handler: Callable[[CommandArgs], CommandResult | None] | None
          Required at registration time.
        - descr: str or Unset
          One-line description for listings.
        - usage: str or Unset
          Argument syntax shown after the command name (e.g. "<prefab> [amount]").
        - permission: PermissionLevel
          Level the caller must hold.
        - examples: Iterable[str]
          Argument lines shown under "Examples" in the command's help.
        - hidden: bool
          Excluded from help listings (still executable and completable).
        """
        metadata = {
            "name": name,
            "handler": handler,
            "descr": descr,
            "usage": usage,
            "permission": permission,
            "examples": examples,
            "hidden": hidden,
        }
        _process_strings(type(self), metadata)
        _process_examples(type(self), metadata)
        _process_semantics(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._namespace = None
        self._bound = False

    @property
    def key(self):
        """Normalized lookup key of this command."""
        return casefold(self.name)

    @property
    def prefix(self):
        """Route as typed after the program name: "name" or "namespace name"."""
        if self.namespace is None:
            return self.name
        return "%s %s" % (self.namespace, self.name)

    def _bind(self, namespace):
        """
        Record the owning namespace (None for built-ins); only the first binding sticks.
        """
        if self._bound:
            if self._namespace != namespace:
                raise ConfigurationError(
                    "command %r already belongs to %s" % (
                        self.name, "namespace %r" % self._namespace if self._namespace else "the built-ins"
                    ),
                    code=FaultCode.NAMESPACE_REBOUND,
                    hint="create a separate command config for every scope it is registered in",
                )
            return
        self._namespace = namespace
        self._bound = True

    def __call__(self, args):
        if self.handler is None:
            raise TypeError(f"{type(self).__typename__} {self.name!r} has no handler")
        return self.handler(args)


def command(source=Unset, /, *args, **kwargs):
    """
    Create a CommandConfig from a function, or return a decorator that does.

    Modes
    - command(func, name="x", ...)   -> CommandConfig
    - @command(name="x", ...)        -> decorator
    - @command                       -> decorator applied directly

    The name defaults to the function's __name__ and the description to its
    docstring (first paragraph).
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        options = dict(kwargs)
        name = options.pop("name", Unset)
        descr = options.pop("descr", Unset)
        if descr is Unset and (doc := inspect.getdoc(source)):
            descr = doc.split("\n\n", 1)[0].replace("\n", " ")
        return CommandConfig(coalesce(name, getattr(source, "__name__", "")), source, descr, *args, **options)

    return wrapper(source) if source is not Unset else wrapper


def _check_config(config):
    if not isinstance(config, CommandConfig):
        raise ConfigurationError(
            "register() expects a command config, got %s" % type(config).__name__,
            code=FaultCode.INVALID_FIELD,
            hint="build it with CommandConfig(...) or @command",
        )
    if not config.name:
        raise ConfigurationError(
            "command name is required",
            code=FaultCode.EMPTY_NAME,
            hint="give the command a non-empty name",
        )
    if config.handler is None:
        raise ConfigurationError(
            "command handler is required for %r" % config.name,
            code=FaultCode.MISSING_HANDLER,
            hint="pass a function taking the parsed arguments",
        )


def _check_namespace(namespace):
    if not isinstance(namespace, str) or not namespace.strip():
        raise ConfigurationError(
            "namespace name is required",
            code=FaultCode.EMPTY_NAMESPACE,
            hint="register namespaced commands as register('<namespace>', config)",
        )
    return casefold(namespace)


def _blank(name):
    return not isinstance(name, str) or not name.strip()


class Registry:
    """
    Owner of the built-in and namespaced command tables.

    One instance is constructed at startup and handed to the Dispatcher and the
    Completer; tests simply build a fresh one.
    """

    def __init__(self):
        self._builtins = {}
        self._namespaces = {}
        self._lock = threading.RLock()

    # ── registration ───────────────────────────────────────────────────────

    def register(self, *parameters):
        """
        Register a command.

        Forms
        - register(config)             built-in
        - register(namespace, config)  namespaced

        Returns the registered config (handy for decorator chains).
        """
        match len(parameters):
            case 1:
                config, = parameters
                _check_config(config)
                key = config.key
                with self._lock:
                    config._bind(None)
                    if key in self._builtins:
                        log.warning("overwriting existing built-in command: %s", key)
                    self._builtins[key] = config
                log.debug("registered built-in command: %s", key)
                return config
            case 2:
                namespace, config = parameters
                namespace = _check_namespace(namespace)
                _check_config(config)
                key = config.key
                with self._lock:
                    config._bind(namespace)
                    commands = self._namespaces.setdefault(namespace, {})
                    if key in commands:
                        log.warning("overwriting existing command: %s %s", namespace, key)
                    commands[key] = config
                log.debug("registered namespaced command: %s %s", namespace, key)
                return config
            case _:
                raise TypeError("register takes 1 to 2 arguments but %d were given" % len(parameters))

    def register_many(self, namespace, /, *configs):
        """
        Register several commands under one namespace.
        """
        for config in configs:
            self.register(namespace, config)

    def command(self, namespace=Unset, /, *args, **kwargs):
        """
        Decorator: build a CommandConfig from the function and register it.

        - @registry.command(...)                 built-in
        - @registry.command("veneer", ...)       namespaced
        """
        @rename("command")
        def wrapper(source, /):
            config = command(source, *args, **kwargs)
            if namespace is Unset:
                return self.register(config)
            return self.register(namespace, config)

        return wrapper

    def unregister(self, *parameters):
        """
        Remove a command; unknown names are ignored.

        Forms
        - unregister(name)
        - unregister(namespace, name)   drops the namespace once it is empty
        """
        match len(parameters):
            case 1:
                name, = parameters
                if _blank(name):
                    return
                with self._lock:
                    removed = self._builtins.pop(casefold(name), None)
                if removed is not None:
                    log.debug("unregistered built-in command: %s", removed.key)
            case 2:
                namespace, name = parameters
                if _blank(namespace) or _blank(name):
                    return
                namespace = casefold(namespace)
                with self._lock:
                    commands = self._namespaces.get(namespace)
                    if commands is None:
                        return
                    removed = commands.pop(casefold(name), None)
                    if not commands:
                        del self._namespaces[namespace]
                if removed is not None:
                    log.debug("unregistered namespaced command: %s %s", namespace, removed.key)
            case _:
                raise TypeError("unregister takes 1 to 2 arguments but %d were given" % len(parameters))

    def unregister_namespace(self, namespace, /):
        """
        Remove every command of a namespace; unknown namespaces are ignored.
        """
        if _blank(namespace):
            return
        with self._lock:
            removed = self._namespaces.pop(casefold(namespace), None)
        if removed is not None:
            log.debug("unregistered namespace: %s (%d commands)", casefold(namespace), len(removed))

    # ── queries ────────────────────────────────────────────────────────────

    def resolve(self, *parameters):
        """
        Return the CommandConfig for a name, or None.

        Forms
        - resolve(name)
        - resolve(namespace, name)
        """
        match len(parameters):
            case 1:
                name, = parameters
                if _blank(name):
                    return None
                with self._lock:
                    return self._builtins.get(casefold(name))
            case 2:
                namespace, name = parameters
                if _blank(namespace) or _blank(name):
                    return None
                with self._lock:
                    return self._namespaces.get(casefold(namespace), {}).get(casefold(name))
            case _:
                raise TypeError("resolve takes 1 to 2 arguments but %d were given" % len(parameters))

    def exists(self, *parameters):
        """
        True when resolve(*parameters) finds a command.
        """
        return self.resolve(*parameters) is not None

    def is_namespace(self, name, /):
        if _blank(name):
            return False
        with self._lock:
            return casefold(name) in self._namespaces

    def namespace(self, namespace, /):
        """
        Snapshot list of the configs registered under `namespace` ([] when unknown).
        """
        if _blank(namespace):
            return []
        with self._lock:
            return list(self._namespaces.get(casefold(namespace), {}).values())

    def namespaces(self):
        """
        Lower-cased names of the namespaces currently holding commands.
        """
        with self._lock:
            return list(self._namespaces)

    def namespace_commands(self, namespace, /):
        """
        Lower-cased command names of `namespace` ([] when unknown).
        """
        if _blank(namespace):
            return []
        with self._lock:
            return list(self._namespaces.get(casefold(namespace), {}))

    def builtins(self):
        """
        Lower-cased names of every built-in command.
        """
        with self._lock:
            return list(self._builtins)

    def builtin_configs(self):
        """
        Snapshot list of every built-in CommandConfig.
        """
        with self._lock:
            return list(self._builtins.values())

    def __len__(self):
        with self._lock:
            return len(self._builtins) + sum(map(len, self._namespaces.values()))

    def __repr__(self):
        return "registry(builtins=%d, namespaces=%d)" % (len(self.builtins()), len(self.namespaces()))


__all__ = (
    "CommandConfig",
    "command",
    "Registry",
)

# The metaclass is an implementation detail of CommandConfig.
del ConfigType
