from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pdf_analyzer.config import AnalyzerConfig
from pdf_analyzer.core.classifier import TARGET_FILL_COLOR, TARGET_STROKE_COLOR
from pdf_analyzer.core.content_analysis import analyze_content_streams
from pdf_analyzer.core.signature_fields import analyze_signature_fields

if TYPE_CHECKING:
    from pdf_analyzer.core.types import DocumentResult

logger = logging.getLogger(__name__)

LATEX_ENGINE = "latex"
TYPST_ENGINE = "typst"


def analyze(
    path: str,
    engine: str | None = None,
    config: AnalyzerConfig | None = None,
) -> DocumentResult:
    """Extract rectangles from the PDF at ``path``.

    ``engine="latex"`` reads declared signature fields; any other value reads
    the page content streams, keeping only rectangles in the fixed target
    colors. Raises ``ValueError`` if the document cannot be loaded.
    """
    if not path:
        raise ValueError("Empty PDF path")

    config = config or AnalyzerConfig()
    engine = engine or config.default_engine

    logger.info("Analyzing %s with %s engine", path, engine)
    if engine == LATEX_ENGINE:
        return analyze_signature_fields(path)
    return analyze_content_streams(path, TARGET_FILL_COLOR, TARGET_STROKE_COLOR, config)


def to_json(result: DocumentResult) -> str:
    rectangles = []
    for rect in result["rectangles"]:
        data = dict(rect)
        if data.get("fill_color_override") is None:
            data.pop("fill_color_override", None)
        rectangles.append(data)

    return json.dumps({
        "total_pages": result["total_pages"],
        "total_rectangles": result["total_rectangles"],
        "rectangles": rectangles,
    })


def analyze_pdf(
    path: str,
    target_fill_color: str | None = None,
    target_stroke_color: str | None = None,
    engine: str | None = None,
) -> tuple[str, str]:
    """Tagged-result form of :func:`analyze` for callers across a process boundary.

    Returns ``("ok", json)`` or ``("error", message)``. The target colors are
    accepted for call compatibility and ignored.
    """
    try:
        result = analyze(path, engine)
    except ValueError as e:
        return ("error", str(e))
    except Exception as e:
        logger.exception("Analysis of %s failed", path)
        return ("error", f"Processing failed: {e}")
    return ("ok", to_json(result))
