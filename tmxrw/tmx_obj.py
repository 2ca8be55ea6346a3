from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


@dataclass
class TranslationUnit:
    """
    Represents a single translation unit (<tu>) of a TMX file.
    """
    tuid: str
    # Language tag -> segment text, in insertion order
    variants: Dict[str, str] = field(default_factory=dict)

    # Extra attributes written on the <tu> element after tuid
    attributes: Dict[str, str] = field(default_factory=dict)

    # prop type -> value, written as <prop> children before the <tuv>s
    properties: Dict[str, str] = field(default_factory=dict)


class Missing(Enum):
    """
    Lookup result when nothing is stored.
    Members are falsy and never equal to a stored value, including "".
    """
    UNIT = "unit not found"
    LANGUAGE = "language not found"

    def __bool__(self):
        return False

    def __repr__(self):
        return f"Missing.{self.name}"
