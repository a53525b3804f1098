"""Format-specific text extractors.

All functions here are blocking; callers run them in a worker thread.
"""

import io
import re
import zipfile
from xml.etree import ElementTree

import docx
import fitz  # pymupdf
from PIL import Image

# DrawingML namespace holding slide text runs (<a:t>)
_DRAWINGML_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
_SLIDE_PART = re.compile(r"^ppt/slides/slide(\d+)\.xml$")


def extract_docx(data: bytes) -> str:
    """Extract paragraph and table text from a Word document."""
    document = docx.Document(io.BytesIO(data))

    parts = [paragraph.text.strip() for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    return "\n".join(part for part in parts if part)


def extract_pptx(data: bytes) -> str:
    """Extract slide text from a presentation archive.

    Slides are read in ascending slide-number order (slide2 before slide10).
    Text runs within a slide are joined by spaces with whitespace collapsed;
    empty slides are skipped; slides are separated by a blank line.
    """
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        slide_parts = sorted(
            (int(match.group(1)), name)
            for name in archive.namelist()
            if (match := _SLIDE_PART.match(name))
        )

        slide_texts = []
        for _, name in slide_parts:
            root = ElementTree.fromstring(archive.read(name))
            runs = [node.text or "" for node in root.iter(f"{{{_DRAWINGML_NS}}}t")]
            text = " ".join(" ".join(runs).split())
            if text:
                slide_texts.append(text)

    return "\n\n".join(slide_texts)


def extract_pdf(data: bytes) -> str:
    """Extract the text layer of a PDF, one block per page."""
    with fitz.open(stream=data, filetype="pdf") as pdf:
        pages = [page.get_text("text").strip() for page in pdf]
    return "\n\n".join(page for page in pages if page)


def render_pdf_pages(data: bytes, max_pages: int, zoom: float = 2.0) -> list[bytes]:
    """Render the first ``max_pages`` pages of a PDF to PNG bytes."""
    with fitz.open(stream=data, filetype="pdf") as pdf:
        matrix = fitz.Matrix(zoom, zoom)
        return [
            pdf[index].get_pixmap(matrix=matrix).tobytes("png")
            for index in range(min(max_pages, pdf.page_count))
        ]


def load_image(data: bytes) -> Image.Image:
    """Decode an image fully so corrupt files fail here, not inside OCR."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image
