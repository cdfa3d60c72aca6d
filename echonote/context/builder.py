"""Builds assistant instructions from the current note collections.

Both builders are pure: identical inputs always give identical text. They
are re-run in full whenever the notes change, since the remote assistant
cannot apply a partial update to its instructions.
"""

from typing import Sequence

from ..models.notes import Note

APP_NAME = "EchoNote Summarizer"


def format_transcript(note: Note) -> str:
    """Render a transcript as one ``speaker: text`` line per segment."""
    return "\n".join(f"{segment.speaker}: {segment.text}" for segment in note.transcript)


def build_global_context(active_notes: Sequence[Note], trashed_notes: Sequence[Note]) -> str:
    """Build instructions for the assistant that covers every note.

    Args:
        active_notes: Active notes in display order
        trashed_notes: Trashed notes in display order

    Returns:
        System instruction text listing active titles with summaries and
        trashed titles
    """
    if active_notes:
        active_context = "Here are the user's current summaries:\n" + "\n".join(
            f'- Title: "{note.title}" (Summary: {note.summary})' for note in active_notes
        )
    else:
        active_context = "The user currently has no active summaries."

    if trashed_notes:
        trashed_context = "Here are the items in the user's recycle bin:\n" + "\n".join(
            f'- Title: "{note.title}"' for note in trashed_notes
        )
    else:
        trashed_context = "The user's recycle bin is empty."

    return f"""You are the built-in AI assistant for the "{APP_NAME}" application.
Your ONLY purpose is to help users with their notes and the app's features.
You are strictly forbidden from answering any general knowledge questions or engaging in conversations unrelated to the user's summaries or the app itself.
If the user asks a question outside of your scope (e.g., "What is the capital of France?", "Tell me a joke"), you MUST politely decline and remind them of your purpose. For example, say: "I can only answer questions about your notes and summaries within the EchoNote app. How can I help you with your recordings?"

You have access to the following information about the user's data:

1.  **Active Summaries**:
{active_context}

2.  **Recycle Bin**:
{trashed_context}

Use this information to answer questions about their notes. You can count items, search for keywords in titles and summaries, and compare notes."""


def build_note_context(note: Note) -> str:
    """Build instructions for an assistant scoped to a single note."""
    return f"""You are a helpful assistant analyzing an audio recording.
The user is asking questions about a recording with the title: "{note.title}".

Here is the full transcription of the recording:
---
{format_transcript(note)}
---

And here is a summary:
---
{note.summary}
---

Your task is to answer the user's questions based ONLY on the provided transcription and summary. Do not invent information. If the answer is not in the text, say that you cannot find the information in the recording."""
