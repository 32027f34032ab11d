"""Shared fixtures for unit tests.

Provides: in-memory PDFs, a populated document store and a mocked Gemini client.
"""
from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest

from guide_qa.llm_client import GeminiClient
from guide_qa.rag.store import Chunk, DocumentStore
from tests.unit.helpers import build_pdf, make_chunk


@pytest.fixture
def deadline_pdf() -> bytes:
    """Two pages: the deadline on page 1, page 2 blank."""
    return build_pdf(["Admission deadline is May 1.", None])


@pytest.fixture
def chunks() -> List[Chunk]:
    return [
        make_chunk(1, "Admission deadline is May 1."),
        make_chunk(2, "Tuition fees are paid per semester."),
        make_chunk(4, "The library opens at 8 am."),
        make_chunk(5, "Housing applications close in June."),
    ]


@pytest.fixture
def store(chunks) -> DocumentStore:
    return DocumentStore(chunks)


@pytest.fixture
def mock_client() -> MagicMock:
    """Gemini client double with a credential configured."""
    client = MagicMock(spec=GeminiClient)
    client.generate = AsyncMock()
    client.list_models = AsyncMock(return_value=[])
    client.ensure_configured = MagicMock(return_value=None)
    client.is_configured = True
    return client
