"""Relevance selection delegated to the model service.

Handles:
- Selection prompt over every chunk in the store
- Structured (JSON schema) model call at temperature 0
- Mapping returned ids back to chunks
"""
from typing import Dict, List, Optional, Sequence
from pydantic import BaseModel, Field
import structlog

from guide_qa import config
from guide_qa.llm_client import GeminiClient, gemini_client
from guide_qa.rag.store import Chunk

logger = structlog.get_logger()


SELECTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "relevant_document_ids": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
        },
    },
    "required": ["relevant_document_ids"],
}


class SelectionResponse(BaseModel):
    """Expected JSON body of the selection call."""

    relevant_document_ids: List[str] = Field(default_factory=list)


def format_chunks_for_selection(chunks: Sequence[Chunk]) -> str:
    return "\n\n".join(
        f"--- Document ID: {chunk.id} ---\n"
        f"Title: {chunk.title}\n"
        f"Page: {chunk.page_number}\n"
        f"Content: {chunk.content}"
        for chunk in chunks
    )


def build_selection_prompt(query: str, chunks: Sequence[Chunk], max_results: int) -> str:
    return f"""
You are a highly intelligent document retrieval assistant. Your task is to analyze a user's query and a list of documents and identify the documents that are most relevant to answering the query.

User Query: "{query}"

Available Documents:
{format_chunks_for_selection(chunks)}

Based on the query and the documents provided, please return a JSON object containing a single key "relevant_document_ids", which is an array of the ID strings of up to {max_results} of the most relevant documents. The array should be ordered from most to least relevant. If no documents are relevant, return an empty array.
"""


class RelevanceSelector:
    """Asks the model to rank chunks by relevance to a query."""

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        max_results: int = None,
        temperature: float = None,
        corpus_warn_chars: int = None,
    ):
        """Initialize the selector.

        Args:
            client: Gemini client (default global client)
            max_results: Maximum chunks to return (default from config)
            temperature: Sampling temperature (default from config)
            corpus_warn_chars: Prompt size that triggers a scaling warning
        """
        self.client = client or gemini_client
        self.max_results = max_results or config.SELECTION_MAX_RESULTS
        self.temperature = (
            config.SELECTION_TEMPERATURE if temperature is None else temperature
        )
        self.corpus_warn_chars = corpus_warn_chars or config.SELECTION_CORPUS_WARN_CHARS

    async def select(self, query: str, chunks: Sequence[Chunk]) -> List[Chunk]:
        """Return up to max_results chunks, most relevant first.

        Never raises: any failure degrades to an empty selection.

        Args:
            query: User query text
            chunks: Candidate chunks (normally the whole store)

        Returns:
            A subsequence of chunks in the order the model ranked them
        """
        if not chunks:
            return []

        prompt = build_selection_prompt(query, chunks, self.max_results)

        # Every chunk's full text goes into the prompt; fine for tens of pages.
        if len(prompt) > self.corpus_warn_chars:
            logger.warning(
                "selection_corpus_large",
                prompt_chars=len(prompt),
                chunk_count=len(chunks),
                threshold=self.corpus_warn_chars,
            )

        try:
            raw = await self.client.generate(
                prompt,
                response_schema=SELECTION_SCHEMA,
                temperature=self.temperature,
            )
            ids = SelectionResponse.model_validate_json(raw).relevant_document_ids
        except Exception as e:
            logger.error(
                "selection_failed",
                error=str(e),
                error_type=type(e).__name__,
                query_preview=query[:100],
            )
            return []

        by_id: Dict[str, Chunk] = {chunk.id: chunk for chunk in chunks}
        selected: List[Chunk] = []
        for chunk_id in ids:
            chunk = by_id.get(chunk_id)
            if chunk is None:
                logger.warning("selection_unknown_id", chunk_id=chunk_id)
                continue
            if chunk in selected:
                continue
            selected.append(chunk)

        selected = selected[: self.max_results]

        logger.info(
            "selection_completed",
            returned_ids=len(ids),
            selected=[c.id for c in selected],
        )

        return selected
