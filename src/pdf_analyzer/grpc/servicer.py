from __future__ import annotations

from typing import TYPE_CHECKING

import grpc

from pdf_analyzer.core import analysis
from pdf_analyzer.grpc.protos import pb2, pb2_grpc

if TYPE_CHECKING:
    from pdf_analyzer.core.types import RectangleResult

SERVICE_NAME = "pdf_analyzer.v1.PdfAnalyzer"


def _rectangle_message(rect: RectangleResult):
    optional = {}
    if rect["font_name"] is not None:
        optional["font_name"] = rect["font_name"]
    if rect.get("fill_color_override") is not None:
        optional["fill_color_override"] = rect["fill_color_override"]

    return pb2.Rectangle(
        operation=rect["operation"],
        position=pb2.Point(**rect["position"]),
        dimensions=pb2.Dimensions(**rect["dimensions"]),
        corners=pb2.Corners(**rect["corners"]),
        fill_color=rect["fill_color"],
        stroke_color=rect["stroke_color"],
        line_width=rect["line_width"],
        border=rect["border"],
        operation_type=rect["operation_type"],
        fill_color_operands=rect["fill_color_operands"],
        page=rect["page"],
        **optional,
    )


class PdfAnalyzerServicer(pb2_grpc.PdfAnalyzerServicer):
    def AnalyzeDocument(self, request, context):
        try:
            result = analysis.analyze(request.path, request.engine or None)
        except ValueError as e:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, str(e))
            return
        except Exception as e:
            context.abort(grpc.StatusCode.INTERNAL, f"Processing failed: {e}")
            return

        return pb2.AnalyzeDocumentResponse(
            total_pages=result["total_pages"],
            total_rectangles=result["total_rectangles"],
            rectangles=[_rectangle_message(r) for r in result["rectangles"]],
            result_json=analysis.to_json(result),
        )
