"""Configuration source with dotted keys, JSON file loading and change subscriptions."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

DEFAULT_CONFIG_PATH = Path.home() / ".agentmatch" / "config.json"

_MISSING = object()


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or parsed."""


@dataclass(frozen=True)
class ConfigChange:
    """Set of keys whose values changed in one update."""

    keys: frozenset[str]

    def affects(self, section: str) -> bool:
        """True if ``section`` or any key below it changed."""
        prefix = section + "."
        return any(key == section or key.startswith(prefix) for key in self.keys)


ChangeListener = Callable[[ConfigChange], None]


def flatten(values: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys.

    ``{"matcher": {"minScore": 0.2}}`` becomes ``{"matcher.minScore": 0.2}``.
    Dotted keys in the input are kept as given.
    """
    flat: dict[str, Any] = {}
    for key, value in values.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten(value, full_key + "."))
        else:
            flat[full_key] = value
    return flat


class Subscription:
    """Handle for a registered change listener. Release with ``dispose()``."""

    def __init__(self, source: ConfigSource, listener: ChangeListener) -> None:
        self._source = source
        self._listener: ChangeListener | None = listener

    @property
    def active(self) -> bool:
        return self._listener is not None

    def dispose(self) -> None:
        if self._listener is None:
            return
        self._source._remove_listener(self._listener)
        self._listener = None

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()


class ConfigSource:
    """
    Thread-safe key/value settings store.

    Features:
    - Dotted keys (``matcher.weights.typeMatch``), nested mappings accepted on input
    - Optional backing JSON file with ``reload()``
    - Change notifications delivered only for keys whose value actually changed
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        path: Path | None = None,
    ) -> None:
        self.path = path
        self._lock = threading.RLock()
        self._values: dict[str, Any] = flatten(values) if values else {}
        self._listeners: list[ChangeListener] = []

    # -- query ---------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._values

    def as_dict(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._values)

    # -- mutation ------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        self.update({key: value})

    def update(self, values: Mapping[str, Any]) -> frozenset[str]:
        """Merge values into the store and notify listeners once.

        Returns:
            The keys whose values changed.
        """
        flat = flatten(values)
        with self._lock:
            changed = frozenset(
                key for key, value in flat.items()
                if self._values.get(key, _MISSING) != value
            )
            self._values.update(flat)
        self._notify(changed)
        return changed

    def unset(self, key: str) -> None:
        with self._lock:
            existed = self._values.pop(key, _MISSING) is not _MISSING
        if existed:
            self._notify(frozenset({key}))

    def replace(self, values: Mapping[str, Any]) -> frozenset[str]:
        """Swap the whole store for ``values``; removed keys count as changed."""
        flat = flatten(values)
        with self._lock:
            old = self._values
            changed = frozenset(
                key for key in set(old) | set(flat)
                if old.get(key, _MISSING) != flat.get(key, _MISSING)
            )
            self._values = flat
        self._notify(changed)
        return changed

    # -- file backing --------------------------------------------------------

    def reload(self) -> frozenset[str]:
        """Re-read the backing file and notify listeners of differences.

        A missing file is treated as empty.
        """
        if self.path is None:
            return frozenset()
        return self.replace(read_config_file(self.path))

    # -- subscriptions -------------------------------------------------------

    def on_change(self, listener: ChangeListener) -> Subscription:
        with self._lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: ChangeListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _notify(self, keys: Iterable[str]) -> None:
        change = ConfigChange(frozenset(keys))
        if not change.keys:
            return
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                logger.opt(exception=True).error(
                    "Config listener {} failed for keys {}", listener, sorted(change.keys)
                )


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON config file into a mapping.

    Args:
        path: Path to a JSON object file.

    Returns:
        Parsed mapping, or an empty dict if the file does not exist.

    Raises:
        ConfigError: The file is unreadable, not JSON, or not an object.
    """
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be an object: {path}")
    return data


def load_config(path: Path | None = None) -> ConfigSource:
    """Build a ConfigSource backed by ``path`` (default ``~/.agentmatch/config.json``)."""
    path = path or DEFAULT_CONFIG_PATH
    source = ConfigSource(read_config_file(path), path=path)
    logger.debug("Loaded config from {} ({} keys)", path, len(source.as_dict()))
    return source
