"""Two-tier persistence of the signed-in session.

Both tiers are plain string key-value stores, mirroring browser storage:
a durable tier that survives across shells and a session-scoped tier that
lives as long as the invoking shell.

A session-scoped file is named after the shell's process id. Files left by
shells that have exited are pruned with ``prune_session_files``; a file whose
shell died without pruning can still be picked up by a later shell that is
given the same process id before the next prune runs.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from auto_elite_admin.models import Session, StorageTier, UserProfile

logger = logging.getLogger(__name__)

LOGGED_IN_KEY = "autoEliteLoggedIn"
USERNAME_KEY = "autoEliteUser"
TOKEN_KEY = "sessionToken"
PROFILE_KEY = "userData"

SESSION_KEYS = (LOGGED_IN_KEY, USERNAME_KEY, TOKEN_KEY, PROFILE_KEY)

SESSION_FILE_PATTERN = re.compile(r"^session-(\d+)\.json$")


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def snapshot(self) -> dict[str, str]: ...


class MemoryStorage:
    """In-process storage tier."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._items)


class JsonFileStorage:
    """Storage tier backed by a JSON object on disk.

    The file is read on every access so separate CLI invocations observe
    each other's writes. An unreadable file is treated as empty.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed storage file {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, items: dict[str, str]) -> None:
        if not items:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # mkstemp creates the file readable by the owner only
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2)
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._save(items)

    def snapshot(self) -> dict[str, str]:
        return self._load()


class SessionStore:
    """Reads and writes the session keys across both storage tiers."""

    def __init__(self, local: KeyValueStorage, session: KeyValueStorage) -> None:
        self.local = local
        self.session = session

    def tier(self, tier: StorageTier) -> KeyValueStorage:
        return self.local if tier is StorageTier.LOCAL else self.session

    def _source_tier(self) -> tuple[StorageTier | None, StorageTier | None]:
        """Pick the single tier a Session is read from.

        The session-scoped tier wins over the durable one since it can only
        have been written from the current shell. Without a login flag, a tier
        holding a bare token is still read so legacy sessions keep working.

        Returns:
            Tuple of (tier carrying the login flag, tier to read keys from)
        """
        order = (StorageTier.SESSION, StorageTier.LOCAL)
        for tier in order:
            if self.tier(tier).get(LOGGED_IN_KEY) == "true":
                return tier, tier
        for tier in order:
            if self.tier(tier).get(TOKEN_KEY):
                return None, tier
        return None, None

    def load(self) -> Session:
        """Build a Session value from whatever is currently persisted."""
        persistence, source = self._source_tier()
        if source is None:
            return Session()
        storage = self.tier(source)

        profile = None
        raw_profile = storage.get(PROFILE_KEY)
        if raw_profile:
            try:
                data = json.loads(raw_profile)
            except ValueError:
                logger.warning("Ignoring unparseable cached user profile")
            else:
                if isinstance(data, dict):
                    profile = UserProfile.from_api(data)

        return Session(
            logged_in=persistence is not None,
            username=storage.get(USERNAME_KEY),
            token=storage.get(TOKEN_KEY),
            profile=profile,
            persistence=persistence,
        )

    def persist(self, session: Session, tier: StorageTier) -> None:
        """Replace the session keys of one tier with those of ``session``.

        Keys the new session lacks are removed so nothing of an earlier login
        survives in that tier. A durable login also drops the session-scoped
        keys, which would otherwise shadow it; the durable tier is never
        touched by a session-scoped login.
        """
        storage = self.tier(tier)
        values = {
            LOGGED_IN_KEY: "true",
            USERNAME_KEY: session.username,
            TOKEN_KEY: session.token,
            PROFILE_KEY: (
                json.dumps(session.profile.to_api()) if session.profile is not None else None
            ),
        }
        for key, value in values.items():
            if value:
                storage.set(key, value)
            else:
                storage.remove(key)
        if tier is StorageTier.LOCAL:
            self._remove_keys(self.session)
        logger.debug(f"Persisted session for {session.username} in {tier.value} storage")

    def clear(self) -> None:
        """Remove every session key from both tiers."""
        for storage in (self.local, self.session):
            self._remove_keys(storage)

    @staticmethod
    def _remove_keys(storage: KeyValueStorage) -> None:
        for key in SESSION_KEYS:
            storage.remove(key)


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def prune_session_files(state_dir: Path) -> list[Path]:
    """Delete session-scoped files whose shell process has exited.

    Only runs on POSIX, where signal 0 probes a process without touching it.

    Args:
        state_dir: Directory holding the storage files

    Returns:
        Paths that were removed
    """
    if os.name != "posix" or not state_dir.is_dir():
        return []

    removed = []
    for path in state_dir.iterdir():
        match = SESSION_FILE_PATTERN.match(path.name)
        if match is None or _pid_alive(int(match.group(1))):
            continue
        path.unlink(missing_ok=True)
        removed.append(path)
        logger.debug(f"Removed stale session file {path}")
    return removed
