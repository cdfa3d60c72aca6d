"""Gemini REST client for summarization and streaming chat."""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiAPIError(Exception):
    """Raised when the Gemini API answers with a non-200 status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Gemini API error: {status} - {body}")
        self.status = status
        self.body = body


def extract_text(response: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate in a response.

    Args:
        response: Decoded ``GenerateContentResponse`` JSON

    Returns:
        Candidate text, or an empty string if the response carries none
    """
    if not isinstance(response, dict):
        return ""
    candidates = response.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def parse_sse_line(line: bytes) -> Optional[Dict[str, Any]]:
    """Decode one server-sent-events line.

    Returns:
        The JSON payload of a ``data:`` line, or None for blank lines,
        comments and other fields
    """
    text = line.decode("utf-8").strip()
    if not text.startswith("data:"):
        return None
    data = text[len("data:"):].strip()
    if not data or data == "[DONE]":
        return None
    return json.loads(data)


class GeminiClient:
    """Thin async wrapper over the Gemini ``generateContent`` endpoints."""

    def __init__(self,
                 api_key: str,
                 model: str = DEFAULT_MODEL,
                 base_url: str = DEFAULT_BASE_URL,
                 timeout_seconds: float = 120):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name used for every request
            base_url: API root, without trailing slash
            timeout_seconds: Total timeout for one request
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"GeminiClient initialized with model: {model}")

    def _url(self, method: str) -> str:
        return f"{self.base_url}/models/{self.model}:{method}"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    async def generate_content(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Send a single non-streaming request.

        Raises:
            GeminiAPIError: If the API returns a non-200 status
            aiohttp.ClientError: On transport failure
        """
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(self._url("generateContent"), headers=self._headers(), json=body) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise GeminiAPIError(response.status, error_text)

                return await response.json()

    async def stream_generate_content(self, body: Dict[str, Any]) -> AsyncIterator[str]:
        """Send a streaming request and yield text fragments as they arrive.

        Raises:
            GeminiAPIError: If the API returns a non-200 status
            aiohttp.ClientError: On transport failure
        """
        url = self._url("streamGenerateContent")
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, headers=self._headers(), params={"alt": "sse"}, json=body) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise GeminiAPIError(response.status, error_text)

                async for line in response.content:
                    event = parse_sse_line(line)
                    if event is None:
                        continue
                    text = extract_text(event)
                    if text:
                        yield text

    def create_chat(self, system_instruction: str) -> "GeminiChat":
        """Open a chat whose instructions stay fixed for its lifetime."""
        return GeminiChat(self, system_instruction)


class GeminiChat:
    """Multi-turn chat over the stateless REST API.

    The full history is resent with every message. A turn is recorded in
    the history only after its reply has streamed to completion.
    """

    def __init__(self, client: GeminiClient, system_instruction: str):
        self.client = client
        self.system_instruction = system_instruction
        self.history: List[Dict[str, Any]] = []

    async def send_message_stream(self, message: str) -> AsyncIterator[str]:
        """Send a user message and yield the reply in fragments."""
        user_turn = {"role": "user", "parts": [{"text": message}]}
        body = {
            "systemInstruction": {"parts": [{"text": self.system_instruction}]},
            "contents": self.history + [user_turn],
        }

        reply = []
        async for text in self.client.stream_generate_content(body):
            reply.append(text)
            yield text

        self.history.append(user_turn)
        self.history.append({"role": "model", "parts": [{"text": "".join(reply)}]})
        logger.debug(f"Chat exchange complete, history has {len(self.history)} turns")
