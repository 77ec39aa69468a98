"""Interview session engine: data model, response parser, store and state machine."""
from .engine import COMPLETION_MESSAGE, SessionEngine
from .errors import (
    ConcurrentModification,
    GenerationFailed,
    NotFound,
    SchemaError,
    SessionEnded,
    SessionError,
    SessionValidationError,
    Unauthorized,
)
from .models import (
    TOPIC_ADVANCE_MIN_TURNS,
    ConversationTurn,
    QuestionSegment,
    Session,
    can_proceed_to_next_topic,
    invariant_violations,
)
from .personas import Persona, get_persona, list_personas
from .results import SaveResult, SessionStateView, StartResult, SubmitResult, TopicResult
from .store import QuestionSegmentStore

__all__ = [
    "COMPLETION_MESSAGE",
    "ConcurrentModification",
    "ConversationTurn",
    "GenerationFailed",
    "NotFound",
    "Persona",
    "QuestionSegment",
    "QuestionSegmentStore",
    "SaveResult",
    "SchemaError",
    "Session",
    "SessionEnded",
    "SessionEngine",
    "SessionError",
    "SessionStateView",
    "SessionValidationError",
    "StartResult",
    "SubmitResult",
    "TOPIC_ADVANCE_MIN_TURNS",
    "TopicResult",
    "Unauthorized",
    "can_proceed_to_next_topic",
    "get_persona",
    "invariant_violations",
    "list_personas",
]
