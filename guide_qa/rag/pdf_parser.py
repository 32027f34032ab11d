"""PDF text extraction backed by PyMuPDF.

Handles:
- One-time extractor initialization
- Opening a PDF from raw bytes
- Per-page text fragments in ascending page order
"""
from dataclasses import dataclass
from typing import Iterator, List
import fitz  # PyMuPDF
import structlog

from guide_qa import config

logger = structlog.get_logger()


@dataclass
class PageText:
    """Text fragments extracted from one PDF page."""

    page_number: int  # 1-indexed
    page_count: int
    fragments: List[str]

    @property
    def text(self) -> str:
        """Fragments joined with single spaces."""
        return " ".join(self.fragments)


class PdfTextExtractor:
    """Extracts per-page word fragments from PDF bytes."""

    def __init__(self, display_errors: bool = None):
        """Initialize the extractor.

        Args:
            display_errors: Whether MuPDF prints its own parser warnings to
                stderr (default from config.MUPDF_DISPLAY_ERRORS)
        """
        self.display_errors = (
            config.MUPDF_DISPLAY_ERRORS if display_errors is None else display_errors
        )
        self._initialized = False

    def initialize(self) -> None:
        """Apply MuPDF process-wide settings. Safe to call more than once."""
        if self._initialized:
            return

        fitz.TOOLS.mupdf_display_errors(self.display_errors)
        self._initialized = True

        logger.info(
            "pdf_extractor_initialized",
            mupdf_version=fitz.VersionBind,
            display_errors=self.display_errors,
        )

    def iter_pages(self, data: bytes) -> Iterator[PageText]:
        """Yield the text of every page, in ascending page order.

        Args:
            data: Raw PDF bytes

        Yields:
            PageText for each page, including pages without text

        Raises:
            RuntimeError: If the bytes are not a readable PDF
        """
        self.initialize()

        with fitz.open(stream=data, filetype="pdf") as doc:
            logger.debug("pdf_opened", page_count=doc.page_count)
            for index in range(doc.page_count):
                page = doc.load_page(index)
                # words: (x0, y0, x1, y1, word, block_no, line_no, word_no)
                words = page.get_text("words", sort=True)
                yield PageText(
                    page_number=index + 1,
                    page_count=doc.page_count,
                    fragments=[w[4] for w in words],
                )
