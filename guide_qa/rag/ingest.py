"""Ingest pipeline for loading the source PDF into the document store.

Orchestrates:
- Source fetch (local file or HTTP GET)
- Page-by-page text extraction
- Blank page filtering
- Chunk creation with stable ids
"""
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import asyncio
import httpx
import structlog

from guide_qa import config
from guide_qa.rag.pdf_parser import PdfTextExtractor
from guide_qa.rag.store import Chunk, DocumentStore, make_chunk_id

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int], None]


class IngestError(Exception):
    """Raised when the source PDF cannot be fetched or parsed."""


async def fetch_source(
    source: str,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bytes:
    """Fetch the source PDF as bytes.

    Args:
        source: http(s) URL or local filesystem path
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport, used by tests

    Returns:
        Raw file bytes

    Raises:
        IngestError: On non-2xx responses, connection errors or unreadable files
    """
    if source.startswith(("http://", "https://")):
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                response = await client.get(source)
                response.raise_for_status()
                logger.info(
                    "source_fetched",
                    source=source,
                    size_bytes=len(response.content),
                )
                return response.content
        except httpx.HTTPStatusError as e:
            logger.error(
                "source_fetch_failed",
                source=source,
                status_code=e.response.status_code,
            )
            raise IngestError(f"Failed to fetch PDF: {e.response.reason_phrase}") from e
        except httpx.HTTPError as e:
            logger.error("source_fetch_failed", source=source, error=str(e))
            raise IngestError(f"Failed to fetch PDF: {e}") from e

    path = Path(source)
    if not path.is_file():
        logger.error("source_file_not_found", source=source)
        raise IngestError(f"Failed to fetch PDF: file not found ({source})")

    try:
        data = path.read_bytes()
    except OSError as e:
        logger.error("source_read_failed", source=source, error=str(e))
        raise IngestError(f"Failed to fetch PDF: {e}") from e

    logger.info("source_read", source=source, size_bytes=len(data))
    return data


class IngestPipeline:
    """Pipeline for turning one PDF into page-level chunks."""

    def __init__(
        self,
        store: DocumentStore,
        extractor: Optional[PdfTextExtractor] = None,
        source: str = None,
        title: str = None,
    ):
        """Initialize the ingest pipeline.

        Args:
            store: Document store to populate
            extractor: PDF text extractor (a default one if not provided)
            source: PDF path or URL (default from config)
            title: Document title used in chunk ids (default from config)
        """
        self.store = store
        self.extractor = extractor or PdfTextExtractor()
        self.source = source or config.PDF_SOURCE
        self.title = title or config.DOCUMENT_TITLE

        self.stats = self._empty_stats()

        logger.info(
            "ingest_pipeline_initialized",
            source=self.source,
            title=self.title,
        )

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "pages_total": 0,
            "pages_indexed": 0,
            "pages_skipped": 0,
            "chars_indexed": 0,
        }

    async def build_chunks(
        self, data: bytes, progress_callback: Optional[ProgressCallback] = None
    ) -> List[Chunk]:
        """Extract chunks from PDF bytes, one per non-blank page.

        Args:
            data: Raw PDF bytes
            progress_callback: Optional callback(current_page, total_pages)

        Returns:
            Chunks in ascending page order

        Raises:
            IngestError: If the PDF cannot be parsed
        """
        self.stats = self._empty_stats()
        chunks: List[Chunk] = []
        pages = self.extractor.iter_pages(data)

        while True:
            try:
                page = next(pages, None)
            except Exception as e:
                logger.error(
                    "pdf_parse_failed",
                    source=self.source,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise IngestError(f"Failed to parse PDF: {e}") from e

            if page is None:
                break

            self.stats["pages_total"] = page.page_count
            text = page.text

            if text.strip():
                chunks.append(
                    Chunk(
                        id=make_chunk_id(self.title, page.page_number),
                        title=self.title,
                        content=text,
                        page_number=page.page_number,
                    )
                )
                self.stats["pages_indexed"] += 1
                self.stats["chars_indexed"] += len(text)
            else:
                logger.debug("blank_page_skipped", page_number=page.page_number)
                self.stats["pages_skipped"] += 1

            if progress_callback:
                progress_callback(page.page_number, page.page_count)

            # Yield to the event loop between pages
            await asyncio.sleep(0)

        return chunks

    async def ingest(
        self, progress_callback: Optional[ProgressCallback] = None
    ) -> List[Chunk]:
        """Fetch, parse and load the source PDF into the store.

        Args:
            progress_callback: Optional callback(current_page, total_pages)

        Returns:
            The chunks now held by the store

        Raises:
            IngestError: If fetching or parsing fails
        """
        logger.info("ingest_started", source=self.source)

        data = await fetch_source(self.source)
        chunks = await self.build_chunks(data, progress_callback=progress_callback)

        self.store.replace(chunks)

        logger.info("ingest_completed", stats=self.stats)

        return chunks
