"""EchoNote - audio notes with AI summaries and assistants."""

__version__ = "0.1.0"
