"""Flat-file dedup adapter.

Implements the core DedupStorePort with an append-only text file holding one
alert key per line.
"""

from __future__ import annotations

import logging
import os

from core.errors import ConfigError

LOGGER = logging.getLogger(__name__)


class FileDedupStore:
    """In-memory set of alert keys backed by an append-only file."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._keys: set[str] = set()

    @property
    def path(self) -> str:
        return self._path

    def __len__(self) -> int:
        return len(self._keys)

    def load(self) -> set[str]:
        """Read every recorded key; a missing file means nothing was alerted yet."""

        keys: set[str] = set()
        if os.path.exists(self._path):
            try:
                with open(self._path, "r", encoding="utf-8") as handle:
                    for line in handle:
                        key = line.strip()
                        if key:
                            keys.add(key)
            except UnicodeDecodeError as exc:
                raise ConfigError(f"Dedup file is not valid UTF-8: {self._path}: {exc}") from exc
        else:
            LOGGER.info("Dedup file %s does not exist yet, starting empty", self._path)
        self._keys = keys
        return set(keys)

    def contains(self, key: str) -> bool:
        return key in self._keys

    def record(self, key: str) -> None:
        """Remember a key in memory and append it to the file."""

        key = key.strip()
        if not key or key in self._keys:
            return
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as handle:
            handle.write(f"{key}\n")
            handle.flush()
            os.fsync(handle.fileno())
        self._keys.add(key)

    def compact(self) -> int:
        """Rewrite the file with one line per key and return lines dropped.

        Membership is unchanged; only blank and repeated lines go away.
        """

        if not os.path.exists(self._path):
            return 0

        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                lines = handle.readlines()
        except UnicodeDecodeError as exc:
            raise ConfigError(f"Dedup file is not valid UTF-8: {self._path}: {exc}") from exc

        ordered: list[str] = []
        seen: set[str] = set()
        for line in lines:
            key = line.strip()
            if key and key not in seen:
                seen.add(key)
                ordered.append(key)

        removed = len(lines) - len(ordered)
        if removed == 0:
            return 0

        tmp_path = f"{self._path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            handle.writelines(f"{key}\n" for key in ordered)
        os.replace(tmp_path, self._path)
        self._keys |= seen
        return removed
