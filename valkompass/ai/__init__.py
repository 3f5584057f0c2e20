from valkompass.ai.gemini_service import AIService, GeminiService, classify_error
from valkompass.ai.retry import retry_async

__all__ = [
    "AIService",
    "GeminiService",
    "classify_error",
    "retry_async",
]
