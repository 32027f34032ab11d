"""In-memory document store holding one page-level chunk per PDF page."""
from dataclasses import dataclass, asdict
from typing import Iterable, Iterator, List, Optional, Set
import structlog

logger = structlog.get_logger()


def make_chunk_id(title: str, page_number: int) -> str:
    """Derive a stable chunk id from the document title and page number."""
    return f"pdf-{title}-page-{page_number}"


@dataclass(frozen=True)
class Chunk:
    """One page of extracted text treated as a retrievable unit."""

    id: str
    title: str
    content: str
    page_number: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


class DocumentStore:
    """Ordered, in-memory collection of chunks from a single source file.

    Written once by ingestion and read-only afterwards.
    """

    def __init__(self, chunks: Iterable[Chunk] = ()):
        self._chunks: List[Chunk] = []
        self.replace(chunks)

    def replace(self, chunks: Iterable[Chunk]) -> None:
        """Replace the store contents wholesale.

        Raises:
            ValueError: If two chunks share an id
        """
        ordered: List[Chunk] = []
        seen: Set[str] = set()
        for chunk in chunks:
            if chunk.id in seen:
                raise ValueError(f"Duplicate chunk id: {chunk.id}")
            seen.add(chunk.id)
            ordered.append(chunk)

        self._chunks = ordered

        logger.info("document_store_replaced", chunk_count=len(ordered))

    @property
    def chunks(self) -> List[Chunk]:
        return list(self._chunks)

    def is_empty(self) -> bool:
        return not self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._chunks)
