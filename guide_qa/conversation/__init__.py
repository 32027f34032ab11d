from guide_qa.conversation.history import ConversationHistory, Turn
from guide_qa.conversation.orchestrator import (
    ConversationOrchestrator,
    SessionState,
    TurnRejected,
)

__all__ = [
    "ConversationHistory",
    "ConversationOrchestrator",
    "SessionState",
    "Turn",
    "TurnRejected",
]
