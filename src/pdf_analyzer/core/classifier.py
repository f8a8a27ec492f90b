from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from pdf_analyzer.core.operations import Operation, Operator

if TYPE_CHECKING:
    from pdf_analyzer.core.graphics_state import GraphicsState
    from pdf_analyzer.core.transform import Affine
    from pdf_analyzer.core.types import RectangleResult

TARGET_FILL_COLOR = "RGB(214, 255, 244)"
TARGET_STROKE_COLOR = "RGB(0, 184, 148)"

STROKE_ONLY = "Stroke only"
FILL_AND_STROKE = "Fill and Stroke"
FILL_ONLY = "Fill only"
UNKNOWN = "Unknown"

DEFAULT_LOOKAHEAD_LIMIT = 64

# Page-background heuristic: the first operator of a stream draws a box from
# x=0 that is wider than a letter page and taller than one, with the height
# negative because the producer flipped the origin to the top-left.
BACKGROUND_MIN_WIDTH = 590.0
BACKGROUND_MAX_HEIGHT = -800.0

# Beyond S, B and f/F, the closing and even-odd painters resolve too, so
# "re f* S" is "Fill only" rather than scanning on to the S.
_PAINT_MODES = {
    Operator.STROKE: STROKE_ONLY,
    Operator.CLOSE_STROKE: STROKE_ONLY,
    Operator.FILL_STROKE: FILL_AND_STROKE,
    Operator.FILL_STROKE_EVEN_ODD: FILL_AND_STROKE,
    Operator.CLOSE_FILL_STROKE: FILL_AND_STROKE,
    Operator.CLOSE_FILL_STROKE_EVEN_ODD: FILL_AND_STROKE,
    Operator.FILL: FILL_ONLY,
    Operator.FILL_COMPAT: FILL_ONLY,
    Operator.FILL_EVEN_ODD: FILL_ONLY,
}

# Operators that show the pending path was abandoned without being painted.
_LOOKAHEAD_TERMINATORS = frozenset({
    Operator.RECTANGLE,
    Operator.MOVE_TO,
    Operator.LINE_TO,
    Operator.CURVE_TO,
    Operator.CURVE_TO_V,
    Operator.CURVE_TO_Y,
    Operator.CLOSE_PATH,
    Operator.SAVE,
    Operator.RESTORE,
    Operator.CONCAT_MATRIX,
    Operator.SET_GRAPHICS_STATE,
    Operator.END_PATH,
})


def classify_paint_mode(
    operations: Sequence[Operation],
    index: int,
    limit: int = DEFAULT_LOOKAHEAD_LIMIT,
) -> str:
    """Scan forward from the rectangle at ``index`` for the operator painting it."""
    end = min(len(operations), index + 1 + limit)
    for op in operations[index + 1:end]:
        mode = _PAINT_MODES.get(op.operator)
        if mode is not None:
            return mode
        if op.operator in _LOOKAHEAD_TERMINATORS:
            return UNKNOWN
    return UNKNOWN


def is_page_background(index: int, x: float, width: float, height: float) -> bool:
    return (
        index == 0
        and x == 0.0
        and width > BACKGROUND_MIN_WIDTH
        and height < BACKGROUND_MAX_HEIGHT
    )


def matches_target(color_tag: str, target: str | None) -> bool:
    if target is None:
        return True
    return target in color_tag


def build_rectangle(
    op: Operation,
    index: int,
    page_number: int,
    state: GraphicsState,
    transform: Affine,
    paint_mode: str,
    fill_color: str,
    stroke_color: str,
    fill_color_override: str | None,
) -> RectangleResult:
    """Transform the rectangle's corners and assemble its record.

    ``y1`` is always the lower edge; ``x1``/``x2`` keep the drawing
    direction of the operands.
    """
    x, y, width, height = op.numbers(4)

    x1, y_start = transform.apply(x, y)
    x2, y_end = transform.apply(x + width, y + height)
    actual_width = x2 - x1
    bottom = min(y_start, y_end)
    top = max(y_start, y_end)

    rect: RectangleResult = {
        "operation": index,
        "position": {"x": x1, "y": y_start},
        "dimensions": {"width": abs(actual_width), "height": top - bottom},
        "corners": {"x1": x1, "y1": bottom, "x2": x2, "y2": top},
        "fill_color": fill_color,
        "stroke_color": stroke_color,
        "line_width": state.line_width,
        "border": state.border_width,
        "font_name": state.font_name,
        "operation_type": paint_mode,
        "fill_color_operands": op.numbers(len(op.operands)),
        "page": page_number,
        "fill_color_override": fill_color_override,
    }
    return rect


def classify_rectangle(
    operations: Sequence[Operation],
    index: int,
    page_number: int,
    state: GraphicsState,
    transform: Affine,
    target_fill_color: str | None = None,
    target_stroke_color: str | None = None,
    lookahead_limit: int = DEFAULT_LOOKAHEAD_LIMIT,
) -> RectangleResult | None:
    """Classify and filter the rectangle operator at ``index``.

    Returns ``None`` when the operator has fewer than four operands or the
    rectangle does not match the target colors.
    """
    op = operations[index]
    if len(op.operands) < 4:
        return None

    x, _, width, height = op.numbers(4)
    paint_mode = classify_paint_mode(operations, index, lookahead_limit)

    fill_color = state.formatted_fill()
    stroke_color = state.formatted_stroke()
    fill_color_override = None
    if is_page_background(index, x, width, height):
        fill_color_override = TARGET_FILL_COLOR
        fill_color = TARGET_FILL_COLOR
        stroke_color = TARGET_STROKE_COLOR

    if not (
        matches_target(fill_color, target_fill_color)
        and matches_target(stroke_color, target_stroke_color)
    ):
        return None

    return build_rectangle(
        op,
        index,
        page_number,
        state,
        transform,
        paint_mode,
        fill_color,
        stroke_color,
        fill_color_override,
    )
