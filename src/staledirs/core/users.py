"""Owner name resolution."""

from __future__ import annotations

import logging
import pwd

log = logging.getLogger(__name__)


class UnknownUserError(Exception):
    """Raised when a user name or uid does not exist."""


class UserCache:
    """Caches uid -> user name lookups for one driver run.

    Lookups that fail are cached too, so a tree full of files owned by a
    deleted account costs one ``getpwuid`` call per uid.
    """

    def __init__(self) -> None:
        self._names: dict[int, str | None] = {}

    def name_of(self, uid: int) -> str | None:
        """Return the user name for *uid*, or None if it has no passwd entry."""
        if uid not in self._names:
            try:
                self._names[uid] = pwd.getpwuid(uid).pw_name
            except KeyError:
                log.debug("No passwd entry for uid %d", uid)
                self._names[uid] = None
        return self._names[uid]

    def display_name(self, uid: int) -> str:
        """Return the user name for *uid*, falling back to the number itself."""
        name = self.name_of(uid)
        return name if name is not None else str(uid)

    def resolve(self, given: str) -> tuple[str, int]:
        """Resolve a user name or numeric uid to ``(name, uid)``.

        Names take precedence over numbers, so an account literally named
        ``"1000"`` wins over uid 1000.

        Raises:
            UnknownUserError: If neither interpretation matches an account.
        """
        try:
            entry = pwd.getpwnam(given)
        except KeyError:
            pass
        else:
            self._names[entry.pw_uid] = entry.pw_name
            return entry.pw_name, entry.pw_uid

        if given.isdigit():
            name = self.name_of(int(given))
            if name is not None:
                return name, int(given)
        raise UnknownUserError(f"no such user: {given}")
