from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

from .errors import UnknownUnitError
from .logger import get_logger
from .tmx_obj import Missing, TranslationUnit

logger = get_logger(__name__)

Lookup = Union[str, Dict[str, str], Missing]


def _require_str(name: str, value) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")


class TranslationStore:
    """
    In-memory, insertion-ordered mapping of tuid -> TranslationUnit.

    Units are created by `set` and only removed by `delete`. Not thread-safe.
    """

    def __init__(self):
        self._units: Dict[str, TranslationUnit] = {}

    def __len__(self):
        return len(self._units)

    def __contains__(self, tuid):
        return tuid in self._units

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._units))

    def units(self) -> Iterator[TranslationUnit]:
        """Yields the stored units in insertion order."""
        return iter(list(self._units.values()))

    def languages(self) -> List[str]:
        """Every language tag used in the store, in order of first appearance."""
        seen: Dict[str, None] = {}
        for unit in self._units.values():
            for lang in unit.variants:
                seen.setdefault(lang, None)
        return list(seen)

    def clear(self):
        self._units.clear()

    # --- Mutation ---

    def set(self, tuid: str, lang: str, value: str):
        """Inserts or overwrites the segment for (tuid, lang), creating the unit if needed."""
        _require_str("tuid", tuid)
        _require_str("lang", lang)
        _require_str("value", value)

        unit = self._units.get(tuid)
        if unit is None:
            unit = TranslationUnit(tuid=tuid)
            self._units[tuid] = unit
        unit.variants[lang] = value

    def set_array(self, entries: Iterable[Sequence[str]]) -> int:
        """
        Applies (tuid, lang, value) triples via `set`.
        Entries that are not sequences, have fewer than 3 fields, or have a
        non-string field among the first three are skipped.
        Returns the number of entries applied.
        """
        applied = 0
        for entry in entries:
            if not isinstance(entry, (list, tuple)):
                logger.debug(f"Skipping batch entry that is not a sequence: {entry!r}")
                continue
            if len(entry) < 3:
                logger.debug(f"Skipping batch entry with {len(entry)} field(s): {entry!r}")
                continue
            if not all(isinstance(item, str) for item in entry[:3]):
                logger.debug(f"Skipping batch entry with a missing field: {entry!r}")
                continue
            self.set(entry[0], entry[1], entry[2])
            applied += 1
        return applied

    def set_attribute(self, tuid: str, name: str, value: str):
        """
        Sets an extra attribute on the <tu> element.

        Raises:
            UnknownUnitError: tuid is not in the store.
        """
        unit = self._units.get(tuid)
        if unit is None:
            raise UnknownUnitError(tuid)
        _require_str("name", name)
        _require_str("value", value)
        if name == "tuid":
            raise ValueError("'tuid' is written from the unit key and cannot be set as an attribute")
        unit.attributes[name] = value

    def set_property(self, tuid: str, prop_type: str, value: str):
        """Sets a <prop> on the unit. Does nothing when tuid is not in the store."""
        unit = self._units.get(tuid)
        if unit is None:
            logger.debug(f"Ignoring property {prop_type!r} for unknown tuid {tuid!r}")
            return
        _require_str("type", prop_type)
        _require_str("value", value)
        unit.properties[prop_type] = value

    def delete(self, tuid: str, lang: Optional[str] = None):
        """
        Removes one variant, or the whole unit when `lang` is omitted.
        Removing the last variant removes the unit as well.
        """
        unit = self._units.get(tuid)
        if unit is None:
            return

        if lang is None:
            del self._units[tuid]
            return

        if lang in unit.variants:
            del unit.variants[lang]
            if not unit.variants:
                del self._units[tuid]

    # --- Access ---

    def get(self, tuid: Optional[str] = None, lang: Optional[str] = None) -> Lookup:
        """
        - no arguments: a snapshot {tuid: {lang: value}} of the whole store
        - tuid: a copy of that unit's variants, or Missing.UNIT
        - tuid and lang: the segment text, Missing.UNIT or Missing.LANGUAGE
        """
        if tuid is None:
            if lang is not None:
                raise ValueError("lang requires a tuid; use get_by_language() instead")
            return {key: dict(unit.variants) for key, unit in self._units.items()}

        unit = self._units.get(tuid)
        if unit is None:
            return Missing.UNIT

        if lang is None:
            return dict(unit.variants)

        if lang not in unit.variants:
            return Missing.LANGUAGE
        return unit.variants[lang]

    def get_by_language(self, lang: str) -> Dict[str, str]:
        """Maps tuid -> segment for every unit that has a variant in `lang`."""
        return {
            tuid: unit.variants[lang]
            for tuid, unit in self._units.items()
            if lang in unit.variants
        }

    def get_attributes(self, tuid: str) -> Union[Dict[str, str], Missing]:
        unit = self._units.get(tuid)
        if unit is None:
            return Missing.UNIT
        return dict(unit.attributes)

    def get_properties(self, tuid: str) -> Union[Dict[str, str], Missing]:
        unit = self._units.get(tuid)
        if unit is None:
            return Missing.UNIT
        return dict(unit.properties)
