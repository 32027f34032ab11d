"""Builders shared by the unit tests."""
import json
from typing import List, Optional

import fitz  # PyMuPDF

from guide_qa.rag.store import Chunk, make_chunk_id


TITLE = "guide.pdf"


def build_pdf(pages: List[Optional[str]]) -> bytes:
    """Build a PDF with one page per entry; None or "" leaves the page blank."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def make_chunk(page_number: int, content: str, title: str = TITLE) -> Chunk:
    return Chunk(
        id=make_chunk_id(title, page_number),
        title=title,
        content=content,
        page_number=page_number,
    )


def selection_json(*ids: str) -> str:
    return json.dumps({"relevant_document_ids": list(ids)})
