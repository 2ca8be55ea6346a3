import os
import shutil
import tempfile
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from lxml import etree

from .backup import BackupPolicy
from .config import TmxConfig
from .errors import (
    MissingPlatformSupportError,
    NoFileError,
    NotFoundError,
    NotReadableError,
    NotWritableError,
    WriteFailedError,
)
from .logger import get_logger
from .parser import ParseStats, TmxParser
from .store import Lookup, TranslationStore
from .writer import TmxWriter

logger = get_logger(__name__)


def check_xml_support(xml_module=None):
    """Raises MissingPlatformSupportError unless streaming read and write are available."""
    if xml_module is None:
        xml_module = etree
    missing = [name for name in ("iterparse", "xmlfile") if not hasattr(xml_module, name)]
    if missing:
        raise MissingPlatformSupportError(
            f"XML streaming support is required (missing: {', '.join(missing)}); "
            "install a recent lxml"
        )


class TmxFile:
    """
    A TMX document opened for reading and rewriting.

    With create=False the file must exist and is loaded right away.
    With create=True an empty document is prepared and the file is created
    (or truncated). Nothing is persisted until write() is called.
    Not thread-safe.
    """

    def __init__(
        self,
        file_path: str,
        create: bool = False,
        encoding: Optional[str] = None,
        header: Optional[Mapping[str, Any]] = None,
        config: Optional[TmxConfig] = None,
    ):
        check_xml_support()

        self.config = (config or TmxConfig()).with_header(header)
        self.store = TranslationStore()
        self._file_path: Optional[str] = None
        self._created = bool(create)
        self._header_properties: Dict[str, str] = {}
        self._writer = TmxWriter(self.config)
        self._backup = BackupPolicy.from_config(self.config)
        self.parse_stats: Optional[ParseStats] = None
        self.last_backup: Optional[str] = None

        if create:
            self._prepare_target(file_path)
        else:
            self._load(file_path, encoding)

    def _prepare_target(self, file_path: str):
        parent = os.path.dirname(file_path) or os.getcwd()
        if not os.path.isdir(parent) or not os.access(parent, os.W_OK):
            raise NotWritableError(f"Directory does not exist or is not writable: {parent}")
        try:
            with open(file_path, "w", encoding="utf-8"):
                pass
        except OSError as e:
            raise NotWritableError(f"Cannot create {file_path}: {e}") from e

        self._file_path = file_path
        logger.info(f"Created empty TMX target {file_path}")

    def _load(self, file_path: str, encoding: Optional[str]):
        if not os.path.exists(file_path):
            raise NotFoundError(f"File not found: {file_path}")
        if not os.access(file_path, os.R_OK):
            raise NotReadableError(f"File exists but is not readable: {file_path}")

        self._file_path = file_path
        self.parse_stats = TmxParser(file_path, encoding).parse(self.store)

    # --- Properties ---

    @property
    def file_path(self) -> Optional[str]:
        return self._file_path

    @property
    def created(self) -> bool:
        """True when the session was opened in creation mode."""
        return self._created

    @property
    def header(self) -> Mapping[str, str]:
        return self.config.header

    @property
    def header_properties(self) -> Dict[str, str]:
        return dict(self._header_properties)

    def __len__(self):
        return len(self.store)

    def __contains__(self, tuid):
        return tuid in self.store

    # --- Store operations ---

    def set_header_properties(self, props: Union[Mapping[str, str], Iterable[Tuple[str, str]]]):
        """Replaces the <prop> children written inside <header>."""
        self._header_properties = {str(k): str(v) for k, v in dict(props).items()}

    def set(self, tuid: str, lang: str, value: str):
        self.store.set(tuid, lang, value)

    def set_array(self, entries: Iterable[Sequence[str]]) -> int:
        return self.store.set_array(entries)

    def set_attribute(self, tuid: str, name: str, value: str):
        self.store.set_attribute(tuid, name, value)

    def set_property(self, tuid: str, prop_type: str, value: str):
        self.store.set_property(tuid, prop_type, value)

    def delete(self, tuid: str, lang: Optional[str] = None):
        self.store.delete(tuid, lang)

    def get(self, tuid: Optional[str] = None, lang: Optional[str] = None) -> Lookup:
        return self.store.get(tuid, lang)

    def get_by_language(self, lang: str) -> Dict[str, str]:
        return self.store.get_by_language(lang)

    # --- Persistence ---

    def write(self, encoding: Optional[str] = None) -> str:
        """
        Serializes the whole store and replaces the file with it.
        A loaded file is backed up first when backups are enabled.

        Raises:
            NoFileError: no destination path is configured.
            WriteFailedError: serialization or the file replacement failed.
        """
        if not self._file_path:
            raise NoFileError("No file.")

        data = self._writer.serialize(self.store, self._header_properties, encoding)

        if not self._created:
            self.last_backup = self._backup.run(self._file_path)

        self._replace_file(data)
        logger.info(f"Wrote {len(self.store)} units to {self._file_path}")
        return self._file_path

    def _replace_file(self, data: bytes):
        target = self._file_path
        dir_name = os.path.dirname(os.path.abspath(target))
        temp_name = None
        try:
            # Write to temp -> rename, so a failed write leaves the old file intact
            with tempfile.NamedTemporaryFile(mode="wb", dir=dir_name, prefix=".", suffix=".tmp",
                                             delete=False) as tf:
                temp_name = tf.name
                tf.write(data)
            if os.path.exists(target):
                shutil.copymode(target, temp_name)
            os.replace(temp_name, target)
        except OSError as e:
            logger.error(f"Writing {target} failed: {e}")
            if temp_name and os.path.exists(temp_name):
                try:
                    os.remove(temp_name)
                except OSError as cleanup_error:
                    logger.warning(f"Could not remove temp file {temp_name}: {cleanup_error}")
            raise WriteFailedError(f"Writing {target} failed: {e}") from e
