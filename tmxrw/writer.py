import io
from typing import Mapping, Optional

from lxml import etree

from .config import TmxConfig
from .errors import WriteFailedError
from .logger import get_logger
from .parser import XML_LANG
from .store import TranslationStore
from .tmx_obj import TranslationUnit

logger = get_logger(__name__)

INDENT = "\t"


def _newline(depth: int) -> str:
    return "\n" + INDENT * depth


def _indent_children(elem, depth: int):
    """Lays out the direct children of `elem` one per line, `elem` sitting at `depth`."""
    if not len(elem):
        return
    elem.text = _newline(depth + 1)
    for child in elem:
        child.tail = _newline(depth + 1)
    elem[-1].tail = _newline(depth)


def _prop_element(parent, prop_type: str, value: str):
    prop = etree.SubElement(parent, "prop")
    prop.set("type", prop_type)
    prop.text = value
    return prop


class TmxWriter:
    """
    Serializes a TranslationStore to a TMX document.

    Units are streamed one <tu> at a time through lxml's incremental writer.
    Layout is fixed (tab indentation) so equal stores give identical bytes.
    """

    def __init__(self, config: Optional[TmxConfig] = None):
        self.config = config or TmxConfig()

    def serialize(
        self,
        store: TranslationStore,
        header_properties: Optional[Mapping[str, str]] = None,
        encoding: Optional[str] = None,
    ) -> bytes:
        encoding = encoding or self.config.encoding
        buffer = io.BytesIO()

        try:
            ascii_compatible = "<".encode(encoding) == b"<"
        except LookupError as e:
            raise WriteFailedError(f"Unknown output encoding {encoding!r}") from e
        # The declaration is written ahead of the lxml stream, so both must share one byte layout
        if not ascii_compatible:
            raise WriteFailedError(f"Output encoding {encoding!r} is not ASCII-compatible")

        declaration = f'<?xml version="{self.config.xml_version}" encoding="{encoding}"?>\n'
        buffer.write(declaration.encode(encoding))

        with etree.xmlfile(buffer, encoding=encoding, close=False) as xf:
            with xf.element("tmx", {"version": self.config.tmx_version}):
                xf.write(_newline(1))
                xf.write(self._header_element(header_properties or {}))
                xf.write(_newline(1))
                if len(store):
                    with xf.element("body"):
                        for unit in store.units():
                            xf.write(_newline(2))
                            xf.write(self._unit_element(unit))
                        xf.write(_newline(1))
                else:
                    xf.write(etree.Element("body"))
                xf.write("\n")
        buffer.write("\n".encode(encoding))

        logger.debug(f"Serialized {len(store)} units ({buffer.tell()} bytes, {encoding})")
        return buffer.getvalue()

    def _header_element(self, header_properties: Mapping[str, str]):
        header = etree.Element("header")
        try:
            for name, value in self.config.header.items():
                header.set(name, value)
            for prop_type, value in header_properties.items():
                _prop_element(header, prop_type, value)
        except (TypeError, ValueError) as e:
            raise WriteFailedError(f"Cannot serialize header: {e}") from e
        _indent_children(header, 1)
        return header

    def _unit_element(self, unit: TranslationUnit):
        tu = etree.Element("tu")
        try:
            tu.set("tuid", unit.tuid)
            for name, value in unit.attributes.items():
                tu.set(name, value)
            for prop_type, value in unit.properties.items():
                _prop_element(tu, prop_type, value)
            for lang, value in unit.variants.items():
                tuv = etree.SubElement(tu, "tuv")
                tuv.set(XML_LANG, lang)
                seg = etree.SubElement(tuv, "seg")
                seg.text = value
                _indent_children(tuv, 3)
        except (TypeError, ValueError) as e:
            raise WriteFailedError(f"Cannot serialize unit {unit.tuid!r}: {e}") from e
        _indent_children(tu, 2)
        return tu
