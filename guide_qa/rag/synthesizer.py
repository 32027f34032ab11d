"""Grounded answer generation over the selected chunks."""
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple
import structlog

from guide_qa import config
from guide_qa.llm_client import ConfigError, GeminiClient, gemini_client
from guide_qa.rag.store import Chunk

logger = structlog.get_logger()

NO_CONTEXT_SENTINEL = "No relevant context found in the knowledge base."
CONTEXT_DELIMITER = "\n\n---\n\n"
GENERIC_FAILURE_MESSAGE = (
    "Failed to generate an answer. The model may be busy or an error occurred. "
    "Please try again."
)

SYSTEM_INSTRUCTION = """You are a helpful and friendly expert. You must answer the user in the same language as their question.
Answer the user's question based *only* on the provided context.
If the context contains the answer, you **must** cite the page number of the source document at the end of your answer, like this: (Page X).
If the context does not contain the answer, state that you don't have enough information in your knowledge base to answer. Do not use your general knowledge.
Be concise and clear."""


class GenerationError(Exception):
    """Raised when the answer call fails for any reason but configuration."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE):
        super().__init__(message)


@dataclass(frozen=True)
class Answer:
    answer: str
    sources: Tuple[Chunk, ...] = field(default_factory=tuple)


def build_context(chunks: Sequence[Chunk]) -> str:
    """Render chunks most-relevant first, or the no-context sentinel."""
    if not chunks:
        return NO_CONTEXT_SENTINEL
    return CONTEXT_DELIMITER.join(
        f"Title: {chunk.title}\nPage: {chunk.page_number}\nContent: {chunk.content}"
        for chunk in chunks
    )


def build_answer_prompt(query: str, context: str) -> str:
    return f"""
CONTEXT:
{context}

Based on the context above, answer this question:
QUESTION:
{query}
"""


class AnswerSynthesizer:
    """Produces a cited answer constrained to the supplied chunks."""

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        temperature: float = None,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ):
        self.client = client or gemini_client
        self.temperature = config.ANSWER_TEMPERATURE if temperature is None else temperature
        self.system_instruction = system_instruction

    async def synthesize(self, query: str, chunks: Sequence[Chunk]) -> Answer:
        """Generate an answer for query from chunks.

        Args:
            query: User query text
            chunks: Selected chunks, most relevant first

        Returns:
            Answer with the model text and the chunks it was given

        Raises:
            ConfigError: If the API key is missing or rejected
            GenerationError: On any other failure
        """
        context = build_context(chunks)
        prompt = build_answer_prompt(query, context)

        logger.info(
            "synthesis_started",
            source_count=len(chunks),
            context_length=len(context),
        )

        try:
            text = await self.client.generate(
                prompt,
                system_instruction=self.system_instruction,
                temperature=self.temperature,
            )
        except ConfigError:
            raise
        except Exception as e:
            logger.error(
                "synthesis_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise GenerationError() from e

        if not text or not text.strip():
            logger.error("synthesis_empty_answer")
            raise GenerationError()

        logger.info("synthesis_completed", answer_length=len(text))

        return Answer(answer=text, sources=tuple(chunks))
