import logging
import os
import threading
from typing import Any, Optional

import yaml
from appdirs import user_config_dir
from attrs import define, field
from pyrsistent import freeze, pmap, thaw
from pyrsistent.typing import PMap

from rectab.utils import replace_file, rotate_backups

DEBOUNCE_TIME = 2
SETTINGS_ENV = "RECTAB_SETTINGS"
logger = logging.getLogger(__name__)


def default_settings_file() -> str:
    """The settings file: ``$RECTAB_SETTINGS`` or the user config dir."""
    value = os.environ.get(SETTINGS_ENV)
    if value:
        return value
    return os.path.join(user_config_dir("rectab"), "settings.yaml")


@define
class LocalSettings:
    """Persistent, per-user settings addressed by dot separated paths.

    The values are kept in an immutable map; each change replaces the map
    and schedules a save. Saves are debounced so that a burst of changes
    results in a single write.

    Attributes:
        file_path: The YAML file that stores the settings.
        settings: The current values.
        read_only: When set changes are kept in memory only.
    """

    file_path: str = field(factory=default_settings_file)
    settings: PMap[str, Any] = field(default=pmap())
    read_only: bool = field(default=False)
    _save_timer: Optional[threading.Timer] = field(default=None, init=False)
    _save_lock: threading.Lock = field(factory=threading.Lock, init=False)

    def __attrs_post_init__(self):
        self.load_settings()

    def __getitem__(self, key: str) -> Any:
        return self.get_setting(key)

    def __setitem__(self, key: str, value: Any):
        self.set_setting(key, value)

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get the value at a dot separated path.

        Args:
            key: The path, like ``table.page_size``.
            default: Returned when any part of the path is missing.
        """
        current: Any = self.settings
        for part in key.split("."):
            if not hasattr(current, "get"):
                return default
            current = current.get(part)
            if current is None:
                return default
        return current

    def set_setting(self, key: str, value: Any):
        """Change the value at a dot separated path and schedule a save.

        Missing intermediate maps are created.
        """
        parts = key.split(".")
        value = freeze(value)

        chain = [self.settings]
        for part in parts[:-1]:
            nxt = chain[-1].get(part)
            if not hasattr(nxt, "set"):
                nxt = pmap()
            chain.append(nxt)

        if chain[-1].get(parts[-1]) == value:
            return

        new_value = chain[-1].set(parts[-1], value)
        for part, parent in zip(reversed(parts[:-1]), reversed(chain[:-1])):
            new_value = parent.set(part, new_value)
        self.settings = new_value
        self.save_settings()

    def load_settings(self):
        """Read the settings file, keeping a rotating set of backups."""
        if not os.path.exists(self.file_path):
            logger.debug("settings file %s does not exist", self.file_path)
            return
        rotate_backups(self.file_path, max_backups=5)
        with open(self.file_path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            logger.warning("settings file %s is empty", self.file_path)
            return
        if not isinstance(loaded, dict):
            logger.error(
                "settings file %s does not contain a mapping", self.file_path
            )
            return
        self.settings = freeze(loaded)
        logger.debug("settings loaded from %s", self.file_path)

    def save_settings(self):
        """Schedule a save of the settings."""
        if self.read_only:
            return
        with self._save_lock:
            if self._save_timer is not None:
                self._save_timer.cancel()
            self._save_timer = threading.Timer(DEBOUNCE_TIME, self._on_timer)
            self._save_timer.daemon = True
            self._save_timer.start()

    def _on_timer(self):
        try:
            with self._save_lock:
                self._save_timer = None
                self._write()
        except Exception as e:
            logger.error("Error saving settings: %s", e, exc_info=True)

    def save_now(self):
        """Cancel any scheduled save and write the settings immediately."""
        if self.read_only:
            return
        with self._save_lock:
            if self._save_timer is not None:
                self._save_timer.cancel()
                self._save_timer = None
            self._write()

    def _write(self):
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        replace_file(
            self.file_path,
            yaml.safe_dump(thaw(self.settings), allow_unicode=True),
        )
        logger.debug("settings saved to %s", self.file_path)
