import logging

import fitz

from pdf_analyzer.core.content_analysis import (
    is_valid_xref,
    open_document,
    parse_numbers,
    parse_references,
)
from pdf_analyzer.core.types import DocumentResult, RectangleResult

logger = logging.getLogger(__name__)

SIGNATURE_FIELD_TYPE = "/Sig"


def _annotation_xrefs(doc: fitz.Document, page: fitz.Page) -> list[int]:
    kind, value = doc.xref_get_key(page.xref, "Annots")
    refs: list[int] = []
    if kind == "array":
        refs = parse_references(value)
    elif kind == "xref":
        target_refs = parse_references(value)
        if target_refs and is_valid_xref(doc, target_refs[0]):
            target = doc.xref_object(target_refs[0], compressed=True).strip()
            if target.startswith("["):
                refs = parse_references(target)
        else:
            logger.warning("Page %d: unresolved Annots reference %s", page.number + 1, value)

    valid = [xref for xref in refs if is_valid_xref(doc, xref)]
    if len(valid) < len(refs):
        logger.warning(
            "Page %d: skipping %d missing annotation objects",
            page.number + 1, len(refs) - len(valid),
        )
    return valid


def _is_signature_field(doc: fitz.Document, xref: int) -> bool:
    # FT is inheritable: widgets merged into a field may carry it on /Parent
    kind, value = doc.xref_get_key(xref, "FT")
    if kind == "name":
        return value == SIGNATURE_FIELD_TYPE
    kind, value = doc.xref_get_key(xref, "Parent")
    parents = parse_references(value) if kind == "xref" else []
    if not parents or not is_valid_xref(doc, parents[0]):
        return False
    kind, value = doc.xref_get_key(parents[0], "FT")
    return kind == "name" and value == SIGNATURE_FIELD_TYPE


def _field_rect(doc: fitz.Document, xref: int) -> list[float] | None:
    kind, value = doc.xref_get_key(xref, "Rect")
    if kind != "array":
        return None
    coords = parse_numbers(value)
    if len(coords) != 4:
        return None
    return coords


def find_signature_fields(doc: fitz.Document) -> list[RectangleResult]:
    rectangles: list[RectangleResult] = []
    for page in doc:
        for xref in _annotation_xrefs(doc, page):
            if not _is_signature_field(doc, xref):
                continue
            coords = _field_rect(doc, xref)
            if coords is None:
                logger.warning(
                    "Page %d: signature field %d has no usable Rect", page.number + 1, xref
                )
                continue

            x0, y0, x1, y1 = coords
            rectangles.append({
                "operation": 0,
                "position": {"x": x0, "y": y0},
                "dimensions": {"width": x1 - x0, "height": y1 - y0},
                "corners": {"x1": x0, "y1": y0, "x2": x1, "y2": y1},
                "fill_color": "Unknown",
                "stroke_color": "Unknown",
                "line_width": 1.0,
                "border": 1.0,
                "font_name": None,
                "operation_type": "SignatureField",
                "fill_color_operands": [],
                "page": page.number + 1,
                "fill_color_override": None,
            })
    return rectangles


def analyze_signature_fields(path: str) -> DocumentResult:
    doc = open_document(path)
    with doc:
        rectangles = find_signature_fields(doc)
        total_pages = doc.page_count

    logger.info(
        "Found %d signature fields across %d pages", len(rectangles), total_pages
    )

    return {
        "total_pages": total_pages,
        "total_rectangles": len(rectangles),
        "rectangles": rectangles,
    }
