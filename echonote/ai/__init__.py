"""Remote generative-AI access for summarization and chat."""

from .gemini_client import GeminiClient, GeminiChat, GeminiAPIError, extract_text, parse_sse_line
from .summarizer import Summarizer, SummarizationError

__all__ = [
    "GeminiClient",
    "GeminiChat",
    "GeminiAPIError",
    "extract_text",
    "parse_sse_line",
    "Summarizer",
    "SummarizationError",
]
