"""Conversation orchestrator for the guide Q&A assistant.

Sequences relevance selection and answer synthesis for each user turn,
owns the conversation history, and exposes the loading state the chat page
renders. Runs on a single event loop: at most one model round-trip is in
flight at a time.
"""
from enum import Enum
from typing import Any, Dict, Optional
import structlog

from guide_qa import config
from guide_qa.conversation.history import ConversationHistory, Turn
from guide_qa.llm_client import ConfigError, GeminiClient, gemini_client
from guide_qa.rag.ingest import IngestError, IngestPipeline
from guide_qa.rag.selector import RelevanceSelector
from guide_qa.rag.store import DocumentStore
from guide_qa.rag.synthesizer import AnswerSynthesizer, GenerationError

logger = structlog.get_logger()

ERROR_PREFIX = "Sorry, I encountered an error: "
EMPTY_KNOWLEDGE_BASE_MESSAGE = (
    "The knowledge base is not loaded. "
    "Please ensure the Student Guide is available and refresh the page."
)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INGESTING = "ingesting"
    READY = "ready"
    ANSWERING = "answering"
    FAILED = "failed"


class TurnRejected(Exception):
    """Raised when a query is not accepted; nothing is appended."""

    def __init__(self, reason: str, busy: bool = False):
        super().__init__(reason)
        self.busy = busy


class ConversationOrchestrator:
    """Runs ingestion once and then one selection + synthesis per turn."""

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        pipeline: Optional[IngestPipeline] = None,
        selector: Optional[RelevanceSelector] = None,
        synthesizer: Optional[AnswerSynthesizer] = None,
        client: Optional[GeminiClient] = None,
        guide_name: str = None,
    ):
        """Initialize the orchestrator.

        Args:
            store: Document store (a new empty store if not provided)
            pipeline: Ingest pipeline writing into store
            selector: Relevance selector
            synthesizer: Answer synthesizer
            client: Gemini client, checked for a credential before each turn
            guide_name: Human-readable document name used in status turns
        """
        self.client = client or gemini_client
        self.store = store if store is not None else DocumentStore()
        self.pipeline = pipeline or IngestPipeline(self.store)
        self.selector = selector or RelevanceSelector(client=self.client)
        self.synthesizer = synthesizer or AnswerSynthesizer(client=self.client)
        self.guide_name = guide_name or config.GUIDE_NAME

        self.history = ConversationHistory()
        self.state = SessionState.UNINITIALIZED
        self.last_error: Optional[str] = None

    @property
    def messages(self):
        return self.history.turns

    @property
    def is_loading(self) -> bool:
        return self.state in (SessionState.INGESTING, SessionState.ANSWERING)

    @property
    def initial_message(self) -> str:
        return f"Initializing and loading the {self.guide_name}... Please wait."

    @property
    def ready_message(self) -> str:
        return (
            f'Hello! I have loaded the "{self.guide_name}". '
            "You can now ask me any questions about its content."
        )

    async def initialize(self) -> None:
        """Load the source document. Never raises; failures become a turn."""
        if self.state is not SessionState.UNINITIALIZED:
            logger.warning("initialize_skipped", state=self.state.value)
            return

        self.state = SessionState.INGESTING
        self.last_error = None
        self.history.reset(Turn(role="model", content=self.initial_message))

        try:
            await self.pipeline.ingest()
        except IngestError as e:
            self.state = SessionState.FAILED
            self.last_error = str(e)
            self.history.reset(
                Turn(
                    role="model",
                    content=(
                        "Sorry, I encountered an error while loading the guide: "
                        f"{e}. Please try refreshing the page."
                    ),
                )
            )
            logger.error("knowledge_base_load_failed", error=str(e))
            return

        self.state = SessionState.READY
        self.history.reset(Turn(role="model", content=self.ready_message))
        logger.info("knowledge_base_ready", chunk_count=len(self.store))

    async def handle_turn(self, query: str) -> Turn:
        """Answer one user query.

        Appends the user turn immediately and exactly one model turn once the
        pipeline finishes.

        Args:
            query: The user's question

        Returns:
            The appended model turn

        Raises:
            TurnRejected: If the query is blank or another request is in flight
        """
        if not query or not query.strip():
            raise TurnRejected("Message cannot be empty")
        if self.is_loading:
            logger.warning("turn_rejected_busy", state=self.state.value)
            raise TurnRejected("A request is already in progress", busy=True)

        self.history.append(Turn(role="user", content=query))
        self.last_error = None

        if self.store.is_empty():
            logger.warning("turn_with_empty_knowledge_base", state=self.state.value)
            return self.history.append(
                Turn(role="model", content=EMPTY_KNOWLEDGE_BASE_MESSAGE)
            )

        previous_state = self.state
        self.state = SessionState.ANSWERING
        try:
            turn = await self._answer(query)
        finally:
            self.state = previous_state

        return self.history.append(turn)

    # Presentation alias
    send_message = handle_turn

    async def _answer(self, query: str) -> Turn:
        logger.info("turn_started", query_length=len(query))

        try:
            self.client.ensure_configured()
            sources = await self.selector.select(query, self.store.chunks)
            result = await self.synthesizer.synthesize(query, sources)
        except ConfigError as e:
            return self._error_turn(str(e))
        except GenerationError as e:
            return self._error_turn(str(e))
        except Exception as e:
            logger.exception("turn_failed", error=str(e), error_type=type(e).__name__)
            return self._error_turn(str(GenerationError()))

        logger.info(
            "turn_completed",
            answer_length=len(result.answer),
            sources=[c.id for c in result.sources],
        )
        return Turn(role="model", content=result.answer, sources=result.sources)

    def _error_turn(self, message: str) -> Turn:
        self.last_error = message
        logger.error("turn_error", error=message)
        return Turn(role="model", content=f"{ERROR_PREFIX}{message}")

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the state the chat page renders."""
        return {
            "messages": [turn.to_dict() for turn in self.messages],
            "is_loading": self.is_loading,
            "state": self.state.value,
            "document_count": len(self.store),
            "error": self.last_error,
        }
