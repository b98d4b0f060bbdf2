"""
VIS-AI chat assistant client.

Sends the conversation to the hosted chat function and reveals the reply as
it streams in. Two commands are handled before any chat call:

- ``/@add <text>`` saves a freeform note to the hosted notes table.
- ``/@image <prompt>`` asks the hosted image function for a picture.

Only one exchange runs at a time; a submission made while another is in
flight is ignored.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional, Protocol

import requests

from vis_site.config import Settings, settings as default_settings
from vis_site.exceptions import (
    APIConnectionError,
    APITimeoutError,
    MissingAPIKeyError,
    RemoteCallError,
    VisSiteError,
)
from vis_site.logging_config import get_logger, log_event
from vis_site.records import Message
from vis_site.remote_store import NOTES, RemoteStore
from vis_site.sse import ChatStreamDecoder

logger = get_logger(__name__)

ADD_COMMAND = "/@add"
IMAGE_COMMAND = "/@image"

ADD_USAGE_MESSAGE = "❌ Please provide some data after /@add. Example: /@add My favorite subject is Math."
ADD_SUCCESS_TEMPLATE = (
    '✅ Data saved successfully!\n\n📝 **Saved:** "{text}"\n\n'
    "I'll remember this information for future conversations."
)
ADD_FAILURE_MESSAGE = "❌ Sorry, there was an error saving your data. Please try again."

IMAGE_USAGE_MESSAGE = (
    "❌ Please provide a description after /@image. Example: /@image a beautiful sunset over mountains"
)
IMAGE_PENDING_MESSAGE = "🎨 Generating your image..."
IMAGE_SUCCESS_TEMPLATE = '✨ Here\'s your generated image for: "{prompt}"'
IMAGE_FAILURE_MESSAGE = "❌ Sorry, I couldn't generate that image. Please try again with a different prompt."

CHAT_FAILURE_MESSAGE = "Sorry, I encountered an error. Please try again."

# Errors that end one exchange with a friendly assistant message
_REMOTE_FAILURES = (VisSiteError, requests.RequestException, OSError, ValueError, RecursionError)


class ChatState(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    COMMAND_HANDLING = "command_handling"
    STREAMING = "streaming"


class ChatTransport(Protocol):
    def stream_chat(self, messages: list[dict[str, Any]]) -> Iterable[bytes]: ...

    def generate_image(self, prompt: str) -> str: ...


class NoteSaver(Protocol):
    def save_note(self, content: str) -> None: ...


class ChatConversation:
    """Messages of one assistant page visit. Only appended to or last-replaced."""

    def __init__(self, messages: Optional[list[Message]] = None) -> None:
        self._messages: list[Message] = list(messages or [])

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, *messages: Message) -> None:
        self._messages.extend(messages)

    def replace_last(self, message: Message) -> None:
        if not self._messages:
            raise IndexError("replace_last on an empty conversation")
        self._messages[-1] = message

    def as_payload(self) -> list[dict[str, str]]:
        return [m.to_payload() for m in self._messages]


def parse_command(text: str) -> tuple[Optional[str], str]:
    """
    Split trimmed input into (command, argument).

    The command word is matched case-insensitively and must be followed by
    whitespace or the end of input. Returns (None, text) for ordinary chat.
    """
    lowered = text.lower()
    for command in (ADD_COMMAND, IMAGE_COMMAND):
        if not lowered.startswith(command):
            continue
        rest = text[len(command):]
        if rest == "" or rest[0].isspace():
            return command, rest.strip()
    return None, text


class HttpChatTransport:
    """Calls the hosted ``vis-ai-chat`` and ``vis-ai-image`` functions."""

    def __init__(self, cfg: Settings | None = None, *, session: Optional[requests.Session] = None) -> None:
        self.cfg = cfg or default_settings
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        api_key = self.cfg.supabase_publishable_key
        if not api_key:
            raise MissingAPIKeyError("supabase", env_var="VITE_SUPABASE_PUBLISHABLE_KEY")
        return {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}

    def _post(self, url: str, service: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.post(url, headers=self._headers(), **kwargs)
        except requests.Timeout as e:
            raise APITimeoutError(service) from e
        except requests.RequestException as e:
            raise APIConnectionError(service, reason=str(e)) from e

    def stream_chat(self, messages: list[dict[str, Any]]) -> Iterator[bytes]:
        response = self._post(self.cfg.chat_url, "vis-ai-chat", json={"messages": messages}, stream=True)
        with response:
            if not response.ok:
                raise RemoteCallError("Failed to get response", service="vis-ai-chat", status_code=response.status_code)
            if response.raw is None:
                raise RemoteCallError("Response has no body", service="vis-ai-chat")
            try:
                yield from response.iter_content(chunk_size=None)
            except requests.RequestException as e:
                raise APIConnectionError("vis-ai-chat", reason=str(e)) from e

    def generate_image(self, prompt: str) -> str:
        response = self._post(self.cfg.image_url, "vis-ai-image", json={"prompt": prompt})
        if not response.ok:
            raise RemoteCallError("Failed to generate image", service="vis-ai-image", status_code=response.status_code)
        try:
            data = response.json()
        except (ValueError, RecursionError) as e:
            raise RemoteCallError("Image response was not JSON", service="vis-ai-image") from e
        image_url = data.get("imageUrl") if isinstance(data, dict) else None
        if not image_url:
            raise RemoteCallError("No image returned", service="vis-ai-image")
        return image_url


class RemoteNoteSaver:
    """Stores ``/@add`` notes in the hosted notes table."""

    def __init__(self, remote_store: RemoteStore) -> None:
        self.remote_store = remote_store

    def save_note(self, content: str) -> None:
        self.remote_store.insert(NOTES, {"content": content})


class StreamingChatClient:
    """
    Drives one conversation: commands, image requests and streamed replies.

    `on_update` is called with the conversation after every visible change,
    which lets a UI redraw the growing reply.
    """

    def __init__(
        self,
        conversation: ChatConversation,
        transport: ChatTransport,
        note_saver: NoteSaver,
        *,
        on_update: Optional[Callable[[ChatConversation], None]] = None,
    ) -> None:
        self.conversation = conversation
        self.transport = transport
        self.note_saver = note_saver
        self.on_update = on_update
        self._state = ChatState.IDLE
        self._in_flight = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        cfg: Settings | None = None,
        *,
        on_update: Optional[Callable[[ChatConversation], None]] = None,
    ) -> "StreamingChatClient":
        """
        Client over the hosted functions with a fresh conversation.

        Raises MissingAPIKeyError when the publishable key is not configured.
        """
        cfg = cfg or default_settings
        note_saver = RemoteNoteSaver(RemoteStore.from_settings(cfg))
        return cls(ChatConversation(), HttpChatTransport(cfg), note_saver, on_update=on_update)

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is not ChatState.IDLE

    def send(self, text: str) -> bool:
        """
        Handle one user submission.

        Returns False without touching the conversation when the input is
        blank or another exchange is still in flight.
        """
        trimmed = (text or "").strip()
        if not trimmed:
            return False
        if not self._in_flight.acquire(blocking=False):
            logger.debug("Ignoring submission while an exchange is in flight")
            return False

        try:
            self._state = ChatState.DISPATCHING
            command, argument = parse_command(trimmed)
            if command == ADD_COMMAND:
                self._state = ChatState.COMMAND_HANDLING
                self._handle_add(trimmed, argument)
            elif command == IMAGE_COMMAND:
                self._state = ChatState.COMMAND_HANDLING
                self._handle_image(trimmed, argument)
            else:
                self._state = ChatState.STREAMING
                self._stream_reply(trimmed)
        finally:
            self._state = ChatState.IDLE
            self._in_flight.release()
        return True

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.conversation)

    def _handle_add(self, content: str, note: str) -> None:
        user = Message(role="user", content=content)
        if not note:
            self.conversation.append(user, Message(role="assistant", content=ADD_USAGE_MESSAGE))
            self._notify()
            return

        try:
            self.note_saver.save_note(note)
        except _REMOTE_FAILURES as e:
            logger.warning("Error saving note: %s", e, exc_info=True)
            reply = ADD_FAILURE_MESSAGE
        else:
            log_event("note_saved", note_chars=len(note))
            reply = ADD_SUCCESS_TEMPLATE.format(text=note)
        self.conversation.append(user, Message(role="assistant", content=reply))
        self._notify()

    def _handle_image(self, content: str, prompt: str) -> None:
        user = Message(role="user", content=content)
        if not prompt:
            self.conversation.append(user, Message(role="assistant", content=IMAGE_USAGE_MESSAGE))
            self._notify()
            return

        self.conversation.append(user, Message(role="assistant", content=IMAGE_PENDING_MESSAGE))
        self._notify()
        try:
            image_url = self.transport.generate_image(prompt)
        except _REMOTE_FAILURES as e:
            logger.warning("Image generation error: %s", e, exc_info=True)
            self.conversation.replace_last(Message(role="assistant", content=IMAGE_FAILURE_MESSAGE))
        else:
            self.conversation.replace_last(
                Message(role="assistant", content=IMAGE_SUCCESS_TEMPLATE.format(prompt=prompt), image_url=image_url)
            )
        self._notify()

    def _stream_reply(self, content: str) -> None:
        user = Message(role="user", content=content)
        history = self.conversation.as_payload() + [user.to_payload()]
        self.conversation.append(user, Message(role="assistant", content=""))
        self._notify()

        decoder = ChatStreamDecoder()
        reply = ""
        fragment_count = 0
        try:
            for chunk in self.transport.stream_chat(history):
                for fragment in decoder.feed(chunk):
                    reply += fragment
                    fragment_count += 1
                    self.conversation.replace_last(Message(role="assistant", content=reply))
                    self._notify()
        except _REMOTE_FAILURES as e:
            logger.warning("Chat error: %s", e, exc_info=True)
            self.conversation.replace_last(Message(role="assistant", content=CHAT_FAILURE_MESSAGE))
            self._notify()
            return

        log_event("chat_stream_completed", fragment_count=fragment_count, reply_chars=len(reply))
