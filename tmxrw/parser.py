import os
from dataclasses import dataclass
from typing import Optional

from lxml import etree

from .errors import NotFoundError, NotReadableError, TmxParseError
from .logger import get_logger
from .store import TranslationStore

logger = get_logger(__name__)

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


@dataclass
class ParseStats:
    units: int = 0
    segments: int = 0
    skipped_units: int = 0
    skipped_segments: int = 0


class _ParseState:
    """Pending tu/tuv context carried between parse events."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.tuid: Optional[str] = None
        self.lang: Optional[str] = None
        self.in_tu = False


def _local_name(elem) -> str:
    tag = elem.tag
    if not isinstance(tag, str):
        # Comments and processing instructions
        return ""
    return etree.QName(tag).localname if tag.startswith("{") else tag


class TmxParser:
    """
    Streams a TMX file into a TranslationStore.

    Only tu/tuv/seg are read. Header data, props and notes are ignored.
    """

    def __init__(self, file_path: str, encoding: Optional[str] = None):
        self.file_path = file_path
        self.encoding = encoding

    def parse(self, store: TranslationStore) -> ParseStats:
        """
        Parses the file into `store`.

        Raises:
            NotFoundError: the file does not exist.
            TmxParseError: the file is not well-formed XML or the encoding is unknown.
        """
        if not os.path.exists(self.file_path):
            raise NotFoundError(f"File not found: {self.file_path}")

        stats = ParseStats()
        state = _ParseState()
        seen_tuids = set()

        try:
            events = etree.iterparse(
                self.file_path,
                events=("start", "end"),
                encoding=self.encoding,
                remove_comments=True,
            )
            for event, elem in events:
                name = _local_name(elem)
                if event == "start":
                    if name == "tu":
                        state.reset()
                        state.in_tu = True
                        state.tuid = elem.get("tuid")
                        if not state.tuid:
                            stats.skipped_units += 1
                            logger.warning(f"Skipping <tu> without tuid at line {elem.sourceline}")
                    elif name == "tuv" and state.in_tu:
                        state.lang = elem.get(XML_LANG) or elem.get("lang")
                    continue

                if name == "seg":
                    # Only a seg that starts with text carries a value
                    if len(elem) and elem.text is None:
                        stats.skipped_segments += 1
                        logger.debug(f"Skipping <seg> starting with markup at line {elem.sourceline}")
                    elif state.tuid and state.lang:
                        store.set(state.tuid, state.lang, elem.text or "")
                        seen_tuids.add(state.tuid)
                        stats.segments += 1
                    else:
                        stats.skipped_segments += 1
                elif name == "tuv":
                    state.lang = None
                elif name == "tu":
                    state.reset()
                    # Drop the finished subtree and already processed siblings
                    elem.clear()
                    while elem.getprevious() is not None:
                        del elem.getparent()[0]
        except etree.XMLSyntaxError as e:
            raise TmxParseError(f"Malformed TMX file {self.file_path}: {e}") from e
        except LookupError as e:
            raise TmxParseError(f"Unknown encoding {self.encoding!r} for {self.file_path}: {e}") from e
        except OSError as e:
            raise NotReadableError(f"Cannot read {self.file_path}: {e}") from e

        stats.units = len(seen_tuids)
        logger.info(
            f"Loaded {stats.units} units / {stats.segments} segments from {self.file_path}"
            f" (skipped {stats.skipped_units} units, {stats.skipped_segments} segments)"
        )
        return stats
