"""Tests for PDF ingestion into the document store."""
import httpx
import pytest

from guide_qa.rag.ingest import IngestError, IngestPipeline, fetch_source
from guide_qa.rag.pdf_parser import PdfTextExtractor
from guide_qa.rag.store import DocumentStore
from tests.unit.helpers import TITLE, build_pdf


@pytest.fixture
def pipeline() -> IngestPipeline:
    return IngestPipeline(DocumentStore(), source="unused.pdf", title=TITLE)


@pytest.mark.asyncio
async def test_blank_pages_are_skipped(pipeline, deadline_pdf):
    chunks = await pipeline.build_chunks(deadline_pdf)

    assert len(chunks) == 1
    assert chunks[0].page_number == 1
    assert chunks[0].content == "Admission deadline is May 1."
    assert chunks[0].id == f"pdf-{TITLE}-page-1"
    assert pipeline.stats == {
        "pages_total": 2,
        "pages_indexed": 1,
        "pages_skipped": 1,
        "chars_indexed": len("Admission deadline is May 1."),
    }


@pytest.mark.asyncio
async def test_chunks_bounded_by_pages_and_non_empty(pipeline):
    data = build_pdf(["First page text", "", "Third page text", None, "Fifth"])

    chunks = await pipeline.build_chunks(data)

    assert len(chunks) <= 5
    assert [c.page_number for c in chunks] == [1, 3, 5]
    assert all(c.content.strip() for c in chunks)
    assert len({c.id for c in chunks}) == len(chunks)


@pytest.mark.asyncio
async def test_reingestion_yields_identical_ids(deadline_pdf):
    first = await IngestPipeline(DocumentStore(), title=TITLE).build_chunks(deadline_pdf)
    second = await IngestPipeline(DocumentStore(), title=TITLE).build_chunks(deadline_pdf)

    assert [c.id for c in first] == [c.id for c in second]


@pytest.mark.asyncio
async def test_progress_callback_sees_every_page(pipeline):
    seen = []
    data = build_pdf(["a page", None, "another page"])

    await pipeline.build_chunks(data, progress_callback=lambda cur, total: seen.append((cur, total)))

    assert seen == [(1, 3), (2, 3), (3, 3)]


@pytest.mark.asyncio
async def test_progress_callback_errors_are_not_parse_errors(pipeline, deadline_pdf):
    def broken_callback(current, total):
        raise RuntimeError("progress display closed")

    with pytest.raises(RuntimeError, match="progress display closed"):
        await pipeline.build_chunks(deadline_pdf, progress_callback=broken_callback)


@pytest.mark.asyncio
async def test_invalid_pdf_raises_ingest_error(pipeline):
    with pytest.raises(IngestError, match="Failed to parse PDF"):
        await pipeline.build_chunks(b"this is not a pdf")


@pytest.mark.asyncio
async def test_ingest_from_file_replaces_store(tmp_path, deadline_pdf, chunks):
    pdf_path = tmp_path / TITLE
    pdf_path.write_bytes(deadline_pdf)
    store = DocumentStore(chunks)

    result = await IngestPipeline(store, source=str(pdf_path), title=TITLE).ingest()

    assert len(store) == 1
    assert store.chunks == result
    assert [c.id for c in store] == [f"pdf-{TITLE}-page-1"]


@pytest.mark.asyncio
async def test_missing_file_raises_ingest_error(tmp_path):
    pipeline = IngestPipeline(DocumentStore(), source=str(tmp_path / "missing.pdf"))

    with pytest.raises(IngestError, match="Failed to fetch PDF"):
        await pipeline.ingest()


@pytest.mark.asyncio
async def test_fetch_source_over_http(deadline_pdf):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/StudentGuide2025_compressed.pdf"
        return httpx.Response(200, content=deadline_pdf)

    data = await fetch_source(
        "http://guide.test/StudentGuide2025_compressed.pdf",
        transport=httpx.MockTransport(handler),
    )

    assert data == deadline_pdf


@pytest.mark.asyncio
async def test_fetch_source_non_2xx_is_ingest_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))

    with pytest.raises(IngestError, match="Failed to fetch PDF: Not Found"):
        await fetch_source("https://guide.test/guide.pdf", transport=transport)


def test_extractor_initialize_is_idempotent():
    extractor = PdfTextExtractor(display_errors=False)

    extractor.initialize()
    extractor.initialize()

    assert extractor._initialized
