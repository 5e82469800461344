# core/pdf_text.py
from typing import List
import fitz
from model.fact import SlideInput
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


def _normalize(text: str) -> str:
    # Whitespace collapsed within a line; blank lines dropped.
    lines = (" ".join(line.split()) for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def extract_slides(file_bytes: bytes) -> List[SlideInput]:
    """
    Return one SlideInput per page (1-based, contiguous) from the PDF text layer.
    Images are not rendered here; clients attach them when they have them.
    If parsing fails, returns [].
    """
    try:
        out: List[SlideInput] = []
        with timed(logger, "pdf.open"):
            with fitz.open(stream=file_bytes, filetype="pdf") as doc:
                pages = doc.page_count
                with timed(logger, "pdf.parse", pages=pages):
                    for i in range(pages):
                        page = doc.load_page(i)
                        txt = _normalize(page.get_text("text") or "")
                        out.append(SlideInput(slideNumber=i + 1, text=txt))
        logger.info("pdf.slides count=%d", len(out))
        return out
    except Exception:
        # do not log payloads
        logger.error("pdf.parse.error", exc_info=True)
        return []
