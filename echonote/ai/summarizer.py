"""Turns encoded audio into a title, emoji, summary and speaker-labelled transcript."""

import asyncio
import json
import logging
import time

import aiohttp
from pydantic import ValidationError

from ..models.notes import AudioPayload
from ..models.summary import SummaryResult, SUMMARY_RESPONSE_SCHEMA
from .gemini_client import GeminiClient, GeminiAPIError, extract_text

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """This audio can be in any language.
First, auto-detect the language of the audio.
Second, provide a full and accurate transcription of the audio in its original language. You MUST identify and label different speakers (e.g., "Speaker 1", "Speaker 2").
Third, create a concise summary of the content in English.
Fourth, create a short, descriptive title for the recording in English.
Finally, suggest a single, relevant emoji for the title.
Please respond in the requested JSON format."""


class SummarizationError(Exception):
    """Raised when audio could not be turned into a valid summary."""


class Summarizer:
    """Requests structured summaries of audio from Gemini."""

    def __init__(self, client: GeminiClient):
        self.client = client

    def build_request(self, payload: AudioPayload) -> dict:
        """Build the request body for one audio payload."""
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inlineData": {"mimeType": payload.mime_type, "data": payload.data_base64}},
                        {"text": SUMMARY_PROMPT},
                    ],
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": SUMMARY_RESPONSE_SCHEMA,
            },
        }

    @staticmethod
    def parse_response(text: str) -> SummaryResult:
        """Validate the model's JSON answer.

        Raises:
            SummarizationError: If the text is not JSON of the expected shape
        """
        try:
            data = json.loads(text.strip())
            return SummaryResult.model_validate(data)
        except json.JSONDecodeError as e:
            raise SummarizationError(f"Summary response is not valid JSON: {e}") from e
        except ValidationError as e:
            raise SummarizationError(f"Summary response has unexpected shape: {e}") from e

    async def summarize(self, payload: AudioPayload) -> SummaryResult:
        """Transcribe and summarize one recording.

        Args:
            payload: Base64 audio and its MIME type

        Returns:
            Validated summary

        Raises:
            SummarizationError: On any remote failure or malformed answer
        """
        start_time = time.time()
        logger.info(f"Requesting summary for {payload.mime_type} audio ({len(payload.data_base64)} base64 chars)")

        try:
            response = await self.client.generate_content(self.build_request(payload))
            text = extract_text(response)
        except (GeminiAPIError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError covers a 200 reply whose body is not JSON
            logger.error(f"Summarization request failed: {e}")
            raise SummarizationError(f"Summarization request failed: {e}") from e

        result = self.parse_response(text)
        logger.info(f"Summary received in {time.time() - start_time:.2f}s: {result.title_emoji} {result.title}")
        return result
