import os
import shutil
import time
from enum import Enum
from typing import Callable, Optional

from .config import TmxConfig
from .logger import get_logger

logger = get_logger(__name__)

BACKUP_SUFFIX = ".bak"


class BackupMode(Enum):
    SINGLE = "single"  # <file>.bak, replaced on every write
    MULTI = "multi"    # <file>.bak.<unix timestamp>, one per write


class BackupPolicy:
    """
    Copies the current on-disk file aside before it is overwritten.

    Backups are best effort: a failed copy is logged and never stops the write.
    Multi-backup files are never pruned. Two backups within the same second
    get a counter suffix (<file>.bak.<ts>.1, .2, ...) instead of overwriting.
    """

    def __init__(self, enabled: bool = True, mode: BackupMode = BackupMode.SINGLE,
                 clock: Optional[Callable[[], float]] = None):
        self.enabled = enabled
        self.mode = mode
        self._clock = clock

    @classmethod
    def from_config(cls, config: TmxConfig) -> "BackupPolicy":
        mode = BackupMode.MULTI if config.multi_backup else BackupMode.SINGLE
        return cls(enabled=config.backup, mode=mode)

    def backup_path(self, original_path: str) -> str:
        """Returns the destination used for the next backup of `original_path`."""
        path = original_path + BACKUP_SUFFIX
        if self.mode is BackupMode.MULTI:
            now = self._clock() if self._clock else time.time()
            path += f".{int(now)}"
            candidate, counter = path, 0
            while os.path.exists(candidate):
                counter += 1
                candidate = f"{path}.{counter}"
            path = candidate
        return path

    def run(self, original_path: str) -> Optional[str]:
        """
        Backs up `original_path`. Returns the backup path, or None when
        backups are disabled, there is nothing to copy, or the copy failed.
        """
        if not self.enabled:
            return None
        if not os.path.exists(original_path):
            logger.debug(f"Nothing to back up at {original_path}")
            return None

        destination = self.backup_path(original_path)
        try:
            shutil.copyfile(original_path, destination)
        except OSError as e:
            logger.warning(f"Backup of {original_path} to {destination} failed, continuing: {e}")
            return None

        logger.debug(f"Backed up {original_path} to {destination}")
        return destination
