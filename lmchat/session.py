"""Interactive chat session: read a line, stream the reply, remember both."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional

from rich.console import Console

from .errors import TransportError
from .line_editor import LineEditor
from .llm import DEFAULT_SYSTEM_PROMPT, LLMAdapter, build_user_message
from .stream_renderer import render_stream

__all__ = ["ChatSession", "ConversationHistory", "Message", "Role", "SessionState"]

logger = logging.getLogger(__name__)


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class SessionState(Enum):
    AWAITING_INPUT = "awaiting_input"
    STREAMING = "streaming"
    CLOSED = "closed"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ConversationHistory:
    """Role-tagged messages of one session; the system message is fixed."""

    def __init__(self, system_prompt: str = DEFAULT_SYSTEM_PROMPT):
        self._messages: List[Message] = [Message(Role.SYSTEM, system_prompt)]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    @property
    def system_prompt(self) -> str:
        return self._messages[0].content

    @property
    def last(self) -> Message:
        return self._messages[-1]

    def append(self, role: Role, content: str) -> Message:
        if role is Role.SYSTEM:
            raise ValueError("System message is set once, at construction")
        message = Message(role, content)
        self._messages.append(message)
        return message

    def withdraw(self, message: Message) -> bool:
        """Drop ``message`` if it is still the newest entry (failed turn)."""
        if len(self._messages) > 1 and self._messages[-1] is message:
            self._messages.pop()
            return True
        return False

    def to_messages(self) -> List[Dict[str, str]]:
        return [m.to_dict() for m in self._messages]


class ChatSession:
    """Alternates between awaiting input and streaming until the exit keyword."""

    def __init__(
        self,
        llm: LLMAdapter,
        editor: LineEditor,
        console: Console,
        *,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        exit_command: str = "exit",
        prompt: str = "> ",
    ):
        self.llm = llm
        self.editor = editor
        self.console = console
        self.exit_command = exit_command
        self.prompt = prompt
        self.history = ConversationHistory(system_prompt)
        self.state = SessionState.AWAITING_INPUT

    def is_exit_command(self, line: str) -> bool:
        return line.lower() == self.exit_command.lower()

    def run(self) -> None:
        """Loop until the exit keyword. ``TransportError`` ends the current turn
        and propagates; calling ``run()`` again resumes the same conversation."""
        while True:
            self.state = SessionState.AWAITING_INPUT
            line = self.editor.read_line(self.prompt)
            if self.is_exit_command(line):
                self.state = SessionState.CLOSED
                logger.info("Session closed after %d messages", len(self.history))
                return
            self.run_turn(line)

    def run_turn(self, line: str) -> Optional[str]:
        """One request/response round; returns the transcript, ``None`` for blank input."""
        if not line.strip():
            return None

        user_message = self.history.append(Role.USER, build_user_message(line))
        self.state = SessionState.STREAMING
        logger.info("Turn started: %d chars of input", len(line))
        try:
            transcript = render_stream(self.console, self.llm.chat_stream(self.history.to_messages()))
        except TransportError:
            self.history.withdraw(user_message)
            raise
        finally:
            self.state = SessionState.AWAITING_INPUT

        self.history.append(Role.ASSISTANT, transcript)
        logger.info("Turn finished: %d chars of output", len(transcript))
        return transcript
