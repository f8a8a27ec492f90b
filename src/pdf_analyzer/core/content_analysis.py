from __future__ import annotations

import logging
import re
from collections import Counter
from typing import TYPE_CHECKING

import fitz

from pdf_analyzer.config import AnalyzerConfig
from pdf_analyzer.core.interpreter import (
    MOST_COMMON_LIMIT,
    ContentStreamInterpreter,
    CoordinateMode,
)
from pdf_analyzer.core.operations import decode

if TYPE_CHECKING:
    from pdf_analyzer.core.types import DocumentResult, PageAnalysisResult, RectangleResult

logger = logging.getLogger(__name__)

_REFERENCE = re.compile(r"(\d+)\s+\d+\s+R")
_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)")


def open_document(path: str) -> fitz.Document:
    try:
        doc = fitz.open(path, filetype="pdf")
    except Exception as exc:
        raise ValueError(f"Failed to open PDF: {exc}") from exc
    if not doc.is_pdf:
        doc.close()
        raise ValueError("Failed to open PDF: not a PDF document")
    return doc


def parse_references(value: str) -> list[int]:
    """Object numbers of every ``n g R`` reference in a PDF source string."""
    return [int(num) for num in _REFERENCE.findall(value)]


def parse_numbers(value: str) -> list[float]:
    return [float(num) for num in _NUMBER.findall(value)]


def is_valid_xref(doc: fitz.Document, xref: int) -> bool:
    return 0 < xref < doc.xref_length()


def _inherited_box(doc: fitz.Document, xref: int, key: str) -> list[float] | None:
    # page boxes are inheritable from the Pages tree
    seen = set()
    while is_valid_xref(doc, xref) and xref not in seen:
        seen.add(xref)
        kind, value = doc.xref_get_key(xref, key)
        if kind == "array":
            coords = parse_numbers(value)
            if len(coords) >= 4:
                return coords
        kind, value = doc.xref_get_key(xref, "Parent")
        refs = parse_references(value) if kind == "xref" else []
        xref = refs[0] if refs else 0
    return None


def get_page_height(doc: fitz.Document, page: fitz.Page, default: float) -> float:
    """Height of the page box, ``ury - lly``, from MediaBox then CropBox.

    Both boxes are looked up on the page and then on its ``Pages`` ancestors.
    """
    for key in ("MediaBox", "CropBox"):
        coords = _inherited_box(doc, page.xref, key)
        if coords is not None:
            return coords[3] - coords[1]
    return default


def _content_streams(doc: fitz.Document, page: fitz.Page) -> list[bytes] | None:
    """Decompressed bytes of each stream in the page's ``Contents``.

    Returns ``None`` when ``Contents`` is absent, not a reference form or a
    reference to a missing object, in which case the caller falls back to
    the page-level accessor.
    """
    kind, value = doc.xref_get_key(page.xref, "Contents")
    if kind not in ("xref", "array"):
        return None

    refs = parse_references(value)
    if kind == "xref":
        if not refs or not is_valid_xref(doc, refs[0]):
            logger.warning("Page %d: unresolved Contents reference %s", page.number + 1, value)
            return None
        if not doc.xref_is_stream(refs[0]):
            # Contents may point at an array object rather than a stream
            target = doc.xref_object(refs[0], compressed=True).strip()
            if target.startswith("["):
                refs = parse_references(target)

    streams = []
    for xref in refs:
        if not is_valid_xref(doc, xref):
            logger.warning("Page %d: content object %d does not exist", page.number + 1, xref)
            continue
        if not doc.xref_is_stream(xref):
            logger.warning("Page %d: content object %d is not a stream", page.number + 1, xref)
            continue
        try:
            data = doc.xref_stream(xref)
        except Exception as exc:
            logger.warning(
                "Page %d: failed to decompress content stream %d: %s",
                page.number + 1, xref, exc,
            )
            continue
        if data is not None:
            streams.append(data)
    return streams


def analyze_page(
    doc: fitz.Document,
    page: fitz.Page,
    target_fill_color: str | None,
    target_stroke_color: str | None,
    config: AnalyzerConfig,
    coordinate_mode: CoordinateMode = CoordinateMode.TRANSFORM,
) -> PageAnalysisResult:
    page_number = page.number + 1
    page_height = get_page_height(doc, page, config.default_page_height)
    logger.debug("Page %d: height %.2f", page_number, page_height)

    streams = _content_streams(doc, page)
    if streams is None:
        try:
            streams = [page.read_contents()]
        except Exception as exc:
            logger.warning("Page %d: failed to read page contents: %s", page_number, exc)
            streams = []

    summary = {
        "total_operations": 0,
        "rectangle_operations": 0,
        "path_operations": 0,
        "text_operations": 0,
        "other_operations": 0,
    }
    counts: Counter[str] = Counter()
    rectangles: list[RectangleResult] = []

    for data in streams:
        try:
            operations = decode(data)
        except ValueError as exc:
            logger.warning("Page %d: skipping undecodable content stream: %s", page_number, exc)
            continue

        interpreter = ContentStreamInterpreter(
            page_number,
            target_fill_color,
            target_stroke_color,
            coordinate_mode=coordinate_mode,
            page_height=page_height,
            lookahead_limit=config.lookahead_limit,
        )
        result = interpreter.run(operations)
        rectangles.extend(result["rectangles"])
        for key, value in result["summary"].items():
            summary[key] += value
        counts.update(interpreter.operator_counts)

    return {
        "pdf_page": page_number,
        "summary": summary,
        "most_common_operators": [
            {"operator": name, "occurrences": count}
            for name, count in counts.most_common(MOST_COMMON_LIMIT)
        ],
        "rectangles": rectangles,
    }


def analyze_pages(
    path: str,
    target_fill_color: str | None = None,
    target_stroke_color: str | None = None,
    config: AnalyzerConfig | None = None,
) -> list[PageAnalysisResult]:
    config = config or AnalyzerConfig()
    try:
        coordinate_mode = CoordinateMode(config.coordinate_mode)
    except ValueError:
        raise ValueError(f"Unknown coordinate mode: {config.coordinate_mode!r}") from None

    doc = open_document(path)
    with doc:
        return [
            analyze_page(
                doc, page, target_fill_color, target_stroke_color, config, coordinate_mode
            )
            for page in doc
        ]


def analyze_content_streams(
    path: str,
    target_fill_color: str | None = None,
    target_stroke_color: str | None = None,
    config: AnalyzerConfig | None = None,
) -> DocumentResult:
    pages = analyze_pages(path, target_fill_color, target_stroke_color, config)

    rectangles: list[RectangleResult] = []
    for page_result in pages:
        rectangles.extend(page_result["rectangles"])

    logger.info(
        "Found %d rectangles across %d pages in content streams",
        len(rectangles), len(pages),
    )

    return {
        "total_pages": len(pages),
        "total_rectangles": len(rectangles),
        "rectangles": rectangles,
    }
