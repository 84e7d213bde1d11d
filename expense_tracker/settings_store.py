"""Per-user budget settings: monthly budget, fixed expenses and spending limit.

Settings are kept in a small JSON file keyed by user id. A missing or
malformed file simply yields the defaults, where ``0`` means "not set".
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

try:
    from .config import SETTINGS_PATH
    from .models import Configuration, coerce_setting
except ImportError:
    from config import SETTINGS_PATH
    from models import Configuration, coerce_setting

logger = logging.getLogger(__name__)

ConfigurationListener = Callable[[Configuration, Tuple[str, ...]], None]


class JsonConfigurationPersistence:
    """Stores each user's configuration under their id in one JSON document."""

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else SETTINGS_PATH

    def _load_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def read(self, user_id: str) -> Configuration:
        return Configuration.from_mapping(self._load_all().get(str(user_id)))

    def write(self, user_id: str, partial: Mapping[str, float], merge: bool = True) -> None:
        data = self._load_all()
        current = data.get(str(user_id)) if merge else None
        entry = dict(current) if isinstance(current, dict) else {}
        entry.update(partial)
        data[str(user_id)] = entry
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open('w', encoding='utf-8') as handle:
            json.dump(data, handle, indent=2, sort_keys=True)


class ConfigurationStore:
    """Holds the current user's configuration and announces every change.

    ``set`` merges the given fields into the current values and notifies
    each listener exactly once per call with the names of the fields whose
    value actually changed.
    """

    def __init__(self, user_id: Optional[str] = None, persistence: Optional[JsonConfigurationPersistence] = None):
        self.user_id = user_id
        self._persistence = persistence
        self._listeners: List[ConfigurationListener] = []
        if persistence is not None and user_id is not None:
            self._config = persistence.read(user_id)
        else:
            self._config = Configuration()

    def get(self) -> Configuration:
        return self._config

    def set(self, partial: Optional[Mapping[str, Any]] = None, **fields: Any) -> Configuration:
        updates: Dict[str, Any] = dict(partial or {})
        updates.update(fields)
        allowed = Configuration.field_names()
        unknown = sorted(name for name in updates if name not in allowed)
        if unknown:
            raise KeyError(f"Unknown configuration field(s): {', '.join(unknown)}")

        cleaned = {name: coerce_setting(value) for name, value in updates.items()}
        changed = tuple(name for name in allowed if name in cleaned and cleaned[name] != getattr(self._config, name))
        # A failed write leaves the current configuration in place
        if cleaned and self._persistence is not None and self.user_id is not None:
            self._persistence.write(self.user_id, cleaned, merge=True)
        self._config = replace(self._config, **cleaned)

        if changed:
            logger.info("Configuration for user %s changed: %s", self.user_id, ", ".join(changed))

        for listener in list(self._listeners):
            listener(self._config, changed)
        return self._config

    def reset(self, field_name: str) -> Configuration:
        """Set one field back to ``0`` (unset)."""
        return self.set({field_name: 0.0})

    def subscribe(self, listener: ConfigurationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
