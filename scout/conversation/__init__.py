"""
Scout Conversation

Transcript data model, model-facing conversion, history compaction and
durable storage.
"""

from .compaction import DEFAULT_KEEP_LAST, REDACTED_OUTPUT, compact, filter_valid
from .convert import to_model_messages
from .message import Message, MessageRole
from .parts import (
    Part,
    ReasoningPart,
    StepBoundaryPart,
    TextPart,
    ToolCallPart,
    ToolCallState,
    part_from_dict,
    part_to_dict,
)
from .store import (
    BaseConversationStore,
    ConversationStore,
    FileConversationStore,
    InMemoryConversationStore,
    RedisConversationStore,
    SessionMeta,
    create_store,
    validate_key,
)

__all__ = [
    "DEFAULT_KEEP_LAST",
    "REDACTED_OUTPUT",
    "BaseConversationStore",
    "ConversationStore",
    "FileConversationStore",
    "InMemoryConversationStore",
    "Message",
    "MessageRole",
    "Part",
    "ReasoningPart",
    "RedisConversationStore",
    "SessionMeta",
    "StepBoundaryPart",
    "TextPart",
    "ToolCallPart",
    "ToolCallState",
    "compact",
    "create_store",
    "filter_valid",
    "part_from_dict",
    "part_to_dict",
    "to_model_messages",
    "validate_key",
]
