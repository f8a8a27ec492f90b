import fitz
import pytest

LETTER = (612, 792)

# First operator draws a flipped full-page box, the way typst emits backgrounds
BACKGROUND_STREAM = (
    b"0 0 612 -842 re f\n"
    b"q 1 0 0 -1 0 842 cm\n"
    b"0.5 g 72 72 200 40 re f\n"
    b"Q\n"
)

PLAIN_RECTANGLES_STREAM = (
    b"0 0 612 792 re f\n"
    b"q 1 0 0 1 100 50 cm 10 10 20 20 re S Q\n"
)

TEXT_ONLY_STREAM = b"BT /F1 12 Tf 72 720 Td (Hello) Tj ET\n"


def write_pdf(path, pages, signature_rects=None, media_box=None):
    """Write a PDF whose pages carry the given raw content streams.

    ``pages`` is a list with one entry per page, each a list of stream
    bytes. A page with one stream gets a direct ``Contents`` reference, a
    page with several gets an array. ``signature_rects`` maps a 0-based page
    index to the ``/Rect`` arrays of signature widgets to add to it.
    """
    signature_rects = signature_rects or {}
    doc = fitz.open()
    for index, streams in enumerate(pages):
        page = doc.new_page(width=LETTER[0], height=LETTER[1])
        refs = []
        for content in streams:
            xref = doc.get_new_xref()
            doc.update_object(xref, "<<>>")
            doc.update_stream(xref, content)
            refs.append(f"{xref} 0 R")
        if len(refs) == 1:
            doc.xref_set_key(page.xref, "Contents", refs[0])
        elif refs:
            doc.xref_set_key(page.xref, "Contents", "[" + " ".join(refs) + "]")
        if media_box is not None:
            doc.xref_set_key(page.xref, "MediaBox", media_box)

        annots = []
        for rect in signature_rects.get(index, []):
            xref = doc.get_new_xref()
            doc.update_object(
                xref,
                f"<< /Type /Annot /Subtype /Widget /FT /Sig /T (Sig{xref}) /Rect {rect} >>",
            )
            annots.append(f"{xref} 0 R")
        if annots:
            doc.xref_set_key(page.xref, "Annots", "[" + " ".join(annots) + "]")

    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.fixture
def make_pdf(tmp_path):
    """Factory writing PDFs into the test's temp dir."""
    counter = {"n": 0}

    def _make(pages, **kwargs):
        counter["n"] += 1
        return write_pdf(tmp_path / f"doc{counter['n']}.pdf", pages, **kwargs)

    return _make


@pytest.fixture
def plain_pdf(make_pdf) -> str:
    """Single page with a gray page box and a translated stroked square."""
    return make_pdf([[PLAIN_RECTANGLES_STREAM]])


@pytest.fixture
def background_pdf(make_pdf) -> str:
    """Single page whose first operator is a typst-style page background."""
    return make_pdf([[BACKGROUND_STREAM]])


@pytest.fixture
def multi_page_pdf(make_pdf) -> str:
    """3 pages: background, text only, plain rectangles."""
    return make_pdf([
        [BACKGROUND_STREAM],
        [TEXT_ONLY_STREAM],
        [PLAIN_RECTANGLES_STREAM],
    ])


@pytest.fixture
def split_contents_pdf(make_pdf) -> str:
    """One page whose Contents is an array of two streams."""
    return make_pdf([[b"0 0 10 10 re f\n", b"20 20 10 10 re S\n"]])


@pytest.fixture
def signature_pdf(make_pdf) -> str:
    """2 pages, one signature field on the second."""
    return make_pdf(
        [[TEXT_ONLY_STREAM], [TEXT_ONLY_STREAM]],
        signature_rects={1: ["[10 20 110 220]"]},
    )


@pytest.fixture
def corrupt_pdf(tmp_path) -> str:
    path = tmp_path / "corrupt.pdf"
    path.write_bytes(b"not a pdf at all")
    return str(path)
