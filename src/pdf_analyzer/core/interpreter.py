"""Single-pass graphics-state machine over one content stream."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING

from pdf_analyzer.core.classifier import DEFAULT_LOOKAHEAD_LIMIT, classify_rectangle
from pdf_analyzer.core.graphics_state import (
    DEFAULT_COLOR_SPACE,
    GRAY_COLOR_SPACES,
    RGB_COLOR_SPACES,
    GraphicsState,
    gray_tag,
    rgb_tag,
)
from pdf_analyzer.core.operations import Name, Operation, Operator
from pdf_analyzer.core.transform import Affine, page_flip

if TYPE_CHECKING:
    from pdf_analyzer.core.types import PageAnalysisResult, RectangleResult

logger = logging.getLogger(__name__)

MOST_COMMON_LIMIT = 10


class CoordinateMode(Enum):
    TRANSFORM = "transform"
    PAGE_FLIP = "page_flip"


class ContentStreamInterpreter:
    """Replay one content stream and collect the rectangles it draws.

    In ``TRANSFORM`` mode the CTM starts at identity, ``cm`` concatenates onto
    it and ``q``/``Q`` save and restore it alongside the graphics state. In
    ``PAGE_FLIP`` mode ``cm`` is ignored and every point goes through a fixed
    flip against ``page_height``.

    An instance evaluates a single stream; create a new one per stream.
    """

    def __init__(
        self,
        page_number: int,
        target_fill_color: str | None = None,
        target_stroke_color: str | None = None,
        *,
        coordinate_mode: CoordinateMode = CoordinateMode.TRANSFORM,
        page_height: float = 792.0,
        lookahead_limit: int = DEFAULT_LOOKAHEAD_LIMIT,
    ) -> None:
        self.page_number = page_number
        self.target_fill_color = target_fill_color
        self.target_stroke_color = target_stroke_color
        self.coordinate_mode = coordinate_mode
        self.lookahead_limit = lookahead_limit

        self.state = GraphicsState()
        if coordinate_mode is CoordinateMode.PAGE_FLIP:
            self.transform = page_flip(page_height)
        else:
            self.transform = Affine.identity()
        self.state_stack: list[GraphicsState] = []
        self.transform_stack: list[Affine] = []

        self.rectangles: list[RectangleResult] = []
        self.operator_counts: Counter[str] = Counter()
        self.rectangle_count = 0
        self.path_count = 0
        self.text_count = 0
        self.other_count = 0

        self._handlers: dict[Operator, Callable[[Sequence[Operation], int], None]] = {
            Operator.SAVE: self.do_save,
            Operator.RESTORE: self.do_restore,
            Operator.CONCAT_MATRIX: self.do_concat_matrix,
            Operator.SET_LINE_WIDTH: self.do_set_line_width,
            Operator.SET_STROKE_COLOR_SPACE: self.do_set_color_space,
            Operator.SET_FILL_COLOR_SPACE: self.do_set_color_space,
            # SC/sc set colors like SCN/scn and are not counted as "other"
            Operator.SET_STROKE_COLOR: self.do_set_color,
            Operator.SET_FILL_COLOR: self.do_set_color,
            Operator.SET_STROKE_COLOR_N: self.do_set_color,
            Operator.SET_FILL_COLOR_N: self.do_set_color,
            Operator.SET_STROKE_RGB: self.do_set_rgb,
            Operator.SET_FILL_RGB: self.do_set_rgb,
            Operator.SET_STROKE_GRAY: self.do_set_gray,
            Operator.SET_FILL_GRAY: self.do_set_gray,
            Operator.RECTANGLE: self.do_rectangle,
            Operator.MOVE_TO: self.do_move_to,
            Operator.LINE_TO: self.do_path,
            Operator.CURVE_TO: self.do_path,
            Operator.CURVE_TO_V: self.do_path,
            Operator.CURVE_TO_Y: self.do_path,
            Operator.CLOSE_PATH: self.do_path,
            Operator.BEGIN_TEXT: self.do_text,
            Operator.END_TEXT: self.do_text,
            Operator.SHOW_TEXT: self.do_text,
            Operator.SHOW_TEXT_ARRAY: self.do_text,
            Operator.MOVE_TEXT: self.do_text,
            Operator.MOVE_TEXT_LEADING: self.do_text,
            Operator.NEXT_LINE: self.do_text,
            Operator.SET_FONT: self.do_set_font,
            Operator.SET_GRAPHICS_STATE: self.do_other,
            Operator.STROKE: self.do_other,
            Operator.CLOSE_STROKE: self.do_other,
            Operator.FILL: self.do_other,
            Operator.FILL_COMPAT: self.do_other,
            Operator.FILL_EVEN_ODD: self.do_other,
            Operator.FILL_STROKE: self.do_other,
            Operator.FILL_STROKE_EVEN_ODD: self.do_other,
            Operator.CLOSE_FILL_STROKE: self.do_other,
            Operator.CLOSE_FILL_STROKE_EVEN_ODD: self.do_other,
            Operator.END_PATH: self.do_other,
            Operator.INLINE_IMAGE: self.do_other,
            Operator.UNRECOGNIZED: self.do_other,
        }

    @property
    def handled_operators(self) -> frozenset[Operator]:
        return frozenset(self._handlers)

    def run(self, operations: Sequence[Operation]) -> PageAnalysisResult:
        for index, op in enumerate(operations):
            self.operator_counts[op.name] += 1
            self._handlers[op.operator](operations, index)

        logger.debug(
            "Page %d: %d operations, %d rectangle operators, %d rectangles kept",
            self.page_number, len(operations), self.rectangle_count, len(self.rectangles),
        )

        return {
            "pdf_page": self.page_number,
            "summary": {
                "total_operations": len(operations),
                "rectangle_operations": self.rectangle_count,
                "path_operations": self.path_count,
                "text_operations": self.text_count,
                "other_operations": self.other_count,
            },
            "most_common_operators": [
                {"operator": name, "occurrences": count}
                for name, count in self.operator_counts.most_common(MOST_COMMON_LIMIT)
            ],
            "rectangles": self.rectangles,
        }

    # -- graphics state ---------------------------------------------------

    def do_save(self, operations: Sequence[Operation], index: int) -> None:
        self.state_stack.append(self.state.clone())
        self.transform_stack.append(self.transform)

    def do_restore(self, operations: Sequence[Operation], index: int) -> None:
        # unbalanced Q leaves the state alone
        if self.state_stack:
            self.state = self.state_stack.pop()
        if self.transform_stack:
            self.transform = self.transform_stack.pop()

    def do_concat_matrix(self, operations: Sequence[Operation], index: int) -> None:
        op = operations[index]
        if len(op.operands) < 6:
            logger.debug("Ignoring cm with %d operands", len(op.operands))
            return
        if self.coordinate_mode is CoordinateMode.PAGE_FLIP:
            return
        self.transform = self.transform.compose(Affine.from_operands(op.numbers(6)))

    def do_set_line_width(self, operations: Sequence[Operation], index: int) -> None:
        op = operations[index]
        if op.operands:
            self.state.line_width = op.number(0)

    # -- color ------------------------------------------------------------

    def do_set_color_space(self, operations: Sequence[Operation], index: int) -> None:
        op = operations[index]
        space = DEFAULT_COLOR_SPACE
        if op.operands and isinstance(op.operands[0], Name):
            space = str(op.operands[0])
        if op.operator is Operator.SET_STROKE_COLOR_SPACE:
            self.state.stroke_color_space = space
        else:
            self.state.fill_color_space = space

    def do_set_color(self, operations: Sequence[Operation], index: int) -> None:
        op = operations[index]
        stroke = op.operator in (Operator.SET_STROKE_COLOR, Operator.SET_STROKE_COLOR_N)
        space = self.state.stroke_color_space if stroke else self.state.fill_color_space

        if space in RGB_COLOR_SPACES:
            if len(op.operands) < 3:
                return
            color = rgb_tag(*op.numbers(3))
        elif space in GRAY_COLOR_SPACES:
            if not op.operands:
                return
            color = gray_tag(op.number(0))
        else:
            return

        if stroke:
            self.state.stroke_color = color
        else:
            self.state.fill_color = color

    def do_set_rgb(self, operations: Sequence[Operation], index: int) -> None:
        op = operations[index]
        if len(op.operands) < 3:
            return
        color = rgb_tag(*op.numbers(3))
        if op.operator is Operator.SET_STROKE_RGB:
            self.state.stroke_color = color
            self.state.stroke_color_space = "DeviceRGB"
        else:
            self.state.fill_color = color
            self.state.fill_color_space = "DeviceRGB"

    def do_set_gray(self, operations: Sequence[Operation], index: int) -> None:
        op = operations[index]
        if not op.operands:
            return
        color = gray_tag(op.number(0))
        if op.operator is Operator.SET_STROKE_GRAY:
            self.state.stroke_color = color
            self.state.stroke_color_space = "DeviceGray"
        else:
            self.state.fill_color = color
            self.state.fill_color_space = "DeviceGray"

    # -- paths ------------------------------------------------------------

    def do_rectangle(self, operations: Sequence[Operation], index: int) -> None:
        self.rectangle_count += 1
        rect = classify_rectangle(
            operations,
            index,
            self.page_number,
            self.state,
            self.transform,
            self.target_fill_color,
            self.target_stroke_color,
            self.lookahead_limit,
        )
        if rect is not None:
            self.rectangles.append(rect)

    def do_move_to(self, operations: Sequence[Operation], index: int) -> None:
        self.path_count += 1
        op = operations[index]
        if len(op.operands) < 2:
            return
        x, y = op.numbers(2)
        if self.coordinate_mode is CoordinateMode.PAGE_FLIP:
            x, y = self.transform.apply(x, y)
        self.state.current_point = (x, y)

    def do_path(self, operations: Sequence[Operation], index: int) -> None:
        self.path_count += 1

    # -- text -------------------------------------------------------------

    def do_text(self, operations: Sequence[Operation], index: int) -> None:
        self.text_count += 1

    def do_set_font(self, operations: Sequence[Operation], index: int) -> None:
        self.text_count += 1
        op = operations[index]
        if op.operands and isinstance(op.operands[0], Name):
            self.state.current_font = str(op.operands[0]).encode("utf-8")

    def do_other(self, operations: Sequence[Operation], index: int) -> None:
        self.other_count += 1


def interpret(
    operations: Sequence[Operation],
    page_number: int,
    target_fill_color: str | None = None,
    target_stroke_color: str | None = None,
    **options,
) -> PageAnalysisResult:
    """Run a fresh :class:`ContentStreamInterpreter` over ``operations``."""
    interpreter = ContentStreamInterpreter(
        page_number, target_fill_color, target_stroke_color, **options
    )
    return interpreter.run(operations)
