from typing import NotRequired, TypedDict


class PointResult(TypedDict):
    x: float
    y: float


class DimensionsResult(TypedDict):
    width: float
    height: float


class CornersResult(TypedDict):
    x1: float
    y1: float
    x2: float
    y2: float


class RectangleResult(TypedDict):
    operation: int
    position: PointResult
    dimensions: DimensionsResult
    corners: CornersResult
    fill_color: str
    stroke_color: str
    line_width: float
    border: float
    font_name: str | None
    operation_type: str
    fill_color_operands: list[float]
    page: int
    fill_color_override: NotRequired[str | None]


class SummaryResult(TypedDict):
    total_operations: int
    rectangle_operations: int
    path_operations: int
    text_operations: int
    other_operations: int


class OperatorCountResult(TypedDict):
    operator: str
    occurrences: int


class PageAnalysisResult(TypedDict):
    pdf_page: int
    summary: SummaryResult
    most_common_operators: list[OperatorCountResult]
    rectangles: list[RectangleResult]


class DocumentResult(TypedDict):
    total_pages: int
    total_rectangles: int
    rectangles: list[RectangleResult]
