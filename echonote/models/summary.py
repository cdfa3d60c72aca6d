"""Schema for the structured summarization response."""

from typing import List

from pydantic import BaseModel, Field


class SummarySegment(BaseModel):
    """A transcript segment as returned by the model."""
    speaker: str
    text: str


class SummaryResult(BaseModel):
    """Validated summarization output for one audio recording."""
    title: str = Field(min_length=1)
    title_emoji: str = Field(alias="titleEmoji", min_length=1)
    summary: str
    transcription: List[SummarySegment]
    
    model_config = {"populate_by_name": True}


# JSON schema sent with the request so the model answers in this exact shape
SUMMARY_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "transcription": {
            "type": "ARRAY",
            "description": 'The full, accurate transcription of the audio, with speaker labels for each segment. e.g., "Speaker 1", "Speaker 2".',
            "items": {
                "type": "OBJECT",
                "properties": {
                    "speaker": {"type": "STRING", "description": "The identified speaker label."},
                    "text": {"type": "STRING", "description": "The transcribed text for this speaker segment."},
                },
                "required": ["speaker", "text"],
            },
        },
        "summary": {
            "type": "STRING",
            "description": "A concise, well-structured summary of the transcription in English, capturing the key points.",
        },
        "title": {
            "type": "STRING",
            "description": "A short, descriptive title for the recording in English, ideally under 6 words.",
        },
        "titleEmoji": {
            "type": "STRING",
            "description": "A single, relevant emoji that represents the content or tone of the recording.",
        },
    },
    "required": ["transcription", "summary", "title", "titleEmoji"],
}
