"""Conversation sessions for the global assistant and per-note assistants."""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from pubsub import pub

from ..context.builder import build_global_context, build_note_context
from ..models.chat import ChatMessage, ChatRole, SessionState
from ..models.notes import Note

logger = logging.getLogger(__name__)

FAILURE_NOTICE = "Sorry, something went wrong."

# Opens a remote chat from fixed system instructions, e.g. GeminiClient.create_chat
ChatFactory = Callable[[str], Any]


class ConversationSession:
    """One assistant conversation with instructions fixed for its lifetime.

    A session captures the context version it was built for. When the owner
    moves on to a newer version the session is stale: fragments still
    arriving for it are dropped and new messages are refused.
    """

    def __init__(self,
                 name: str,
                 chat_factory: ChatFactory,
                 context: str,
                 version: int = 0,
                 current_version: Optional[Callable[[], int]] = None,
                 on_update: Optional[Callable[["ConversationSession"], None]] = None):
        """Initialize conversation session.

        Args:
            name: Label used in logs ("global" or "note:<id>")
            chat_factory: Opens the remote chat for ``context``
            context: System instructions for the whole session
            version: Context version this session was built from
            current_version: Returns the owner's latest version; defaults to
                ``version`` so the session never goes stale
            on_update: Called whenever the visible transcript changes
        """
        self.name = name
        self.context = context
        self.version = version
        self.state = SessionState.UNINITIALIZED
        self.messages: List[ChatMessage] = []
        self.on_update = on_update

        self._chat_factory = chat_factory
        self._current_version = current_version or (lambda: version)
        self._chat = None
        self._pending: Optional[ChatMessage] = None

    def open(self) -> None:
        """Open the remote chat with this session's context."""
        if self.state is not SessionState.UNINITIALIZED:
            return
        self._chat = self._chat_factory(self.context)
        self.state = SessionState.READY
        logger.info(f"Session {self.name} ready (version {self.version})")

    @property
    def is_stale(self) -> bool:
        return self.version != self._current_version()

    @property
    def is_streaming(self) -> bool:
        return self.state is SessionState.STREAMING

    @property
    def pending_message(self) -> Optional[ChatMessage]:
        """The assistant message currently being streamed into, if any."""
        return self._pending

    def _notify(self) -> None:
        if self.on_update and not self.is_stale:
            self.on_update(self)

    async def send(self, text: str) -> bool:
        """Send a user message and stream the reply into the transcript.

        The user message and an empty assistant message are appended
        immediately; reply fragments are appended to that assistant message
        in arrival order.

        Returns:
            False if the message was refused (blank, session not ready,
            already streaming or stale), True once the exchange finished
        """
        if not text.strip():
            return False
        if self.state is not SessionState.READY:
            logger.warning(f"Session {self.name} is {self.state.value}, ignoring message")
            return False
        if self.is_stale:
            logger.warning(f"Session {self.name} is stale, ignoring message")
            return False

        self.messages.append(ChatMessage(role=ChatRole.USER, text=text))
        self._pending = ChatMessage(role=ChatRole.MODEL, text="")
        self.messages.append(self._pending)
        self.state = SessionState.STREAMING
        self._notify()

        try:
            stream = self._chat.send_message_stream(text)
            try:
                async for fragment in stream:
                    if self.is_stale:
                        logger.info(f"Session {self.name} superseded, discarding remaining reply")
                        break
                    self._pending.text += fragment
                    self._notify()
            finally:
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()
        except Exception as e:
            logger.error(f"Chat error in session {self.name}: {e}")
            if not self.is_stale:
                self.state = SessionState.ERROR
                self._pending.text = FAILURE_NOTICE
                self._notify()
        finally:
            self._pending = None
            self.state = SessionState.READY

        return True


class ConversationSessionManager:
    """Owns the global session and any open per-note sessions.

    The global session is rebuilt from scratch whenever a change message
    arrives on ``topic``; its transcript does not carry over. Note sessions
    are built once per note and kept until closed.
    """

    def __init__(self,
                 chat_factory: ChatFactory,
                 topic: str = "notes.changed",
                 on_update: Optional[Callable[[ConversationSession], None]] = None):
        """Initialize session manager.

        Args:
            chat_factory: Opens a remote chat from system instructions
            topic: Pub/sub topic the note repository publishes changes on
            on_update: Passed to every session this manager creates
        """
        self.chat_factory = chat_factory
        self.topic = topic
        self.on_update = on_update
        self.global_version = 0
        self.global_session: Optional[ConversationSession] = None
        self._note_sessions: Dict[str, ConversationSession] = {}

        pub.subscribe(self._on_notes_changed, topic)
        logger.info(f"ConversationSessionManager subscribed to: {topic}")

    def _on_notes_changed(self, active, trashed, generation) -> None:
        logger.debug(f"Notes changed (generation {generation}), rebuilding global session")
        self.rebuild_global(active, trashed)

    def rebuild_global(self, active: Sequence[Note], trashed: Sequence[Note]) -> ConversationSession:
        """Replace the global session with one built from the given notes."""
        self.global_version += 1
        session = ConversationSession(
            name="global",
            chat_factory=self.chat_factory,
            context=build_global_context(active, trashed),
            version=self.global_version,
            current_version=lambda: self.global_version,
            on_update=self.on_update,
        )
        session.open()
        self.global_session = session
        return session

    def open_note_session(self, note: Note) -> ConversationSession:
        """Get the session for a note, creating it on first use."""
        session = self._note_sessions.get(note.id)
        if session is None:
            session = ConversationSession(
                name=f"note:{note.id}",
                chat_factory=self.chat_factory,
                context=build_note_context(note),
                on_update=self.on_update,
            )
            session.open()
            self._note_sessions[note.id] = session
        return session

    def note_session(self, note_id: str) -> Optional[ConversationSession]:
        return self._note_sessions.get(note_id)

    def close_note_session(self, note_id: str) -> bool:
        """Forget a note's session. Returns False if none was open."""
        session = self._note_sessions.pop(note_id, None)
        if session is None:
            return False
        logger.info(f"Closed session {session.name}")
        return True

    def close(self) -> None:
        """Stop listening for note changes and drop all sessions."""
        pub.unsubscribe(self._on_notes_changed, self.topic)
        self._note_sessions.clear()
        self.global_session = None
