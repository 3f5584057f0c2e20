from valkompass.core.analysis import AnalysisResult, DevilAdvocate, PARTIES, party_name
from valkompass.core.errors import (
    FatalServiceError,
    ResponseValidationError,
    ServiceError,
    SessionStateError,
    StorageError,
    TransientServiceError,
    ValkompassError,
)
from valkompass.core.models import (
    NO_OPINION,
    Answer,
    Question,
    SessionSnapshot,
    SessionState,
    index_answers,
    upsert_answer,
)

__all__ = [
    # Analysis payload
    "AnalysisResult",
    "DevilAdvocate",
    "PARTIES",
    "party_name",
    # Errors
    "FatalServiceError",
    "ResponseValidationError",
    "ServiceError",
    "SessionStateError",
    "StorageError",
    "TransientServiceError",
    "ValkompassError",
    # Session data
    "NO_OPINION",
    "Answer",
    "Question",
    "SessionSnapshot",
    "SessionState",
    "index_answers",
    "upsert_answer",
]
