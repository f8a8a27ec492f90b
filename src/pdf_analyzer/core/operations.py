"""Content-stream operations resolved against a closed operator set.

Raw ``(operands, operator)`` pairs come from pypdf's content-stream parser
and are converted once, here, into :class:`Operation` values. Operands are
plain Python values from then on: numbers become ``float``, names become
:class:`Name` and arrays become ``list``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pypdf.generic import (
    ArrayObject,
    BooleanObject,
    ContentStream,
    DecodedStreamObject,
    FloatObject,
    NameObject,
    NumberObject,
)

logger = logging.getLogger(__name__)


class Name(str):
    """A PDF name operand, without its leading slash."""


class Operator(Enum):
    SAVE = "q"
    RESTORE = "Q"
    CONCAT_MATRIX = "cm"
    SET_GRAPHICS_STATE = "gs"
    SET_LINE_WIDTH = "w"

    SET_STROKE_COLOR_SPACE = "CS"
    SET_FILL_COLOR_SPACE = "cs"
    SET_STROKE_COLOR = "SC"
    SET_FILL_COLOR = "sc"
    SET_STROKE_COLOR_N = "SCN"
    SET_FILL_COLOR_N = "scn"
    SET_STROKE_RGB = "RG"
    SET_FILL_RGB = "rg"
    SET_STROKE_GRAY = "G"
    SET_FILL_GRAY = "g"

    RECTANGLE = "re"
    MOVE_TO = "m"
    LINE_TO = "l"
    CURVE_TO = "c"
    CURVE_TO_V = "v"
    CURVE_TO_Y = "y"
    CLOSE_PATH = "h"

    STROKE = "S"
    CLOSE_STROKE = "s"
    FILL = "f"
    FILL_COMPAT = "F"
    FILL_EVEN_ODD = "f*"
    FILL_STROKE = "B"
    FILL_STROKE_EVEN_ODD = "B*"
    CLOSE_FILL_STROKE = "b"
    CLOSE_FILL_STROKE_EVEN_ODD = "b*"
    END_PATH = "n"

    BEGIN_TEXT = "BT"
    END_TEXT = "ET"
    SHOW_TEXT = "Tj"
    SHOW_TEXT_ARRAY = "TJ"
    MOVE_TEXT = "Td"
    MOVE_TEXT_LEADING = "TD"
    NEXT_LINE = "T*"
    SET_FONT = "Tf"

    INLINE_IMAGE = "BI"

    UNRECOGNIZED = None

    @classmethod
    def _missing_(cls, value: object) -> Operator:
        return cls.UNRECOGNIZED


@dataclass(frozen=True)
class Operation:
    operator: Operator
    name: str
    operands: tuple[Any, ...] = field(default=())

    @classmethod
    def of(cls, name: str, *operands: Any) -> Operation:
        return cls(Operator(name), name, tuple(operands))

    def number(self, index: int) -> float:
        return to_number(self.operands[index])

    def numbers(self, count: int) -> list[float]:
        return [to_number(value) for value in self.operands[:count]]


def to_number(value: Any) -> float:
    """Numeric value of an operand; anything non-numeric reads as 0.0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def _convert_operand(value: Any) -> Any:
    if isinstance(value, NameObject):
        return Name(value[1:] if value.startswith("/") else value)
    if isinstance(value, BooleanObject):
        return bool(value.value)
    if isinstance(value, (NumberObject, FloatObject)):
        return float(value)
    if isinstance(value, ArrayObject):
        return [_convert_operand(item) for item in value]
    return value


# pypdf reports a whole BI ... ID ... EI sequence under this placeholder
_PYPDF_INLINE_IMAGE = "INLINE IMAGE"


def _operator_name(raw: object) -> str:
    name = raw.decode("latin-1") if isinstance(raw, bytes) else str(raw)
    if name == _PYPDF_INLINE_IMAGE:
        return Operator.INLINE_IMAGE.value
    return name


def decode(data: bytes) -> list[Operation]:
    """Tokenize decompressed content-stream bytes into operations.

    Raises ``ValueError`` when the stream cannot be parsed.
    """
    stream = DecodedStreamObject()
    stream.set_data(data)
    try:
        raw_operations = ContentStream(stream, None).operations
    except Exception as exc:
        raise ValueError("Malformed content stream") from exc

    operations = []
    for operands, raw_operator in raw_operations:
        name = _operator_name(raw_operator)
        if isinstance(operands, (list, tuple)):
            converted = tuple(_convert_operand(value) for value in operands)
        else:
            # inline images carry a settings dict instead of an operand list
            converted = (operands,)
        operations.append(Operation(Operator(name), name, converted))

    logger.debug("Decoded %d operations from %d bytes", len(operations), len(data))
    return operations
