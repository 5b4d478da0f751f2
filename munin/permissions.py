"""
Munin permission gate.

Three ordered levels guard every command: ANYONE < ADMIN < HOST. Whether a caller
is an admin or the host is a policy of the host environment, so the gate only asks
an Environment object; it never inspects callers itself.

The gate is fail-closed: an absent caller, an unknown level or an environment
that raises all deny access.
"""
import logging
from collections.abc import Iterable
from enum import IntEnum
from typing import Protocol, runtime_checkable

log = logging.getLogger(__name__)


class PermissionLevel(IntEnum):
    """
    authorization requirement of a command.
    """
    ANYONE = 0
    ADMIN = 1
    HOST = 2


@runtime_checkable
class Environment(Protocol):
    """
    host-side policy answering who is privileged.
    """

    def is_admin(self, caller) -> bool: ...

    def is_host(self, caller) -> bool: ...


class SessionEnvironment:
    """
    Ready-made environment for a game session.

    - single_player: every caller is admin and host (there is nobody to protect).
    - otherwise admins are the explicit `admins` handles plus the host, and the
      host is the single `host` handle (if any).

    Handles are compared by equality, so any hashable caller object works.
    """

    def __init__(self, *, host=None, admins: Iterable = (), single_player: bool = False):
        self.host = host
        self.admins = set(admins)
        self.single_player = single_player

    def is_admin(self, caller) -> bool:
        if caller is None:
            return False
        if self.single_player:
            return True
        return caller in self.admins or self.is_host(caller)

    def is_host(self, caller) -> bool:
        if caller is None:
            return False
        if self.single_player:
            return True
        return self.host is not None and caller == self.host

    def __repr__(self):
        return "session-environment(host=%r, admins=%r, single_player=%r)" % (
            self.host, self.admins, self.single_player
        )


def has_permission(caller, level, environment, /) -> bool:
    """
    Return True when `caller` may run a command that requires `level`.

    Rules
    - an absent caller (None) always fails, whatever the level.
    - ANYONE passes for any present caller, even with no environment.
    - ADMIN / HOST ask the environment; an environment error counts as a denial.
    - anything that is not a PermissionLevel fails.
    """
    if not isinstance(level, PermissionLevel):
        return False
    if caller is None:
        return False
    if level is PermissionLevel.ANYONE:
        return True
    if environment is None:
        return False
    try:
        match level:
            case PermissionLevel.ADMIN:
                return bool(environment.is_admin(caller))
            case PermissionLevel.HOST:
                return bool(environment.is_host(caller))
    except Exception:
        log.exception("permission query failed for level %s", level.name)
        return False
    return False


def permission_name(level, /) -> str:
    """
    Human-readable name of a level ("Anyone", "Admin", "Host"), "Unknown" otherwise.
    """
    if isinstance(level, PermissionLevel):
        return level.name.capitalize()
    return "Unknown"


__all__ = (
    "PermissionLevel",
    "Environment",
    "SessionEnvironment",
    "has_permission",
    "permission_name",
)
