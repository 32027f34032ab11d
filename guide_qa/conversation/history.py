"""Conversation turns and the append-only history that holds them."""
from dataclasses import dataclass, field
from typing import Iterator, List, Literal, Optional, Tuple
import structlog

from guide_qa.rag.store import Chunk

logger = structlog.get_logger()

Role = Literal["user", "model"]


@dataclass(frozen=True)
class Turn:
    """One user or model message."""

    role: Role
    content: str
    sources: Optional[Tuple[Chunk, ...]] = field(default=None)

    def to_dict(self) -> dict:
        data = {"role": self.role, "content": self.content}
        if self.sources is not None:
            data["sources"] = [source.to_dict() for source in self.sources]
        return data


class ConversationHistory:
    """Ordered, append-only sequence of turns."""

    def __init__(self):
        self._turns: List[Turn] = []

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        logger.info(
            "conversation_turn_added",
            role=turn.role,
            position=len(self._turns),
            source_count=len(turn.sources or ()),
        )
        return turn

    def reset(self, *turns: Turn) -> None:
        """Replace the history, used only while the knowledge base loads."""
        self._turns = list(turns)

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self._turns)
