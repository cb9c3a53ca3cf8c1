"""JSON messages exchanged between socker clients and servers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from .framing import int_to_bytes, merge_bytes


class RequestTimeoutError(Exception):
    """Raised when a request does not complete in time."""

    def __init__(self, message: str = "request timeout! ") -> None:
        super().__init__(message)


class Action(IntEnum):
    """What to do after a reply has been sent."""

    NONE = 0
    CLOSE = 1
    SHUTDOWN = 2
    CONTINUE = 3
    DONE = 4


@dataclass
class Reply:
    """A handler's answer to a request."""

    is_async: bool = False
    status: Action = Action.NONE
    body: Any = None


def _dumps(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class Message:
    """A request or reply: an API name and a JSON body."""

    def __init__(self, api: str = "", body: Any = None) -> None:
        self.api = api
        self.body = body
        self.is_async = False
        self.raw = b""
        self.length = 0
        self.body_raw = b""
        self.body_length = 0

    def _refresh(self) -> None:
        self.raw = self.to_bytes()
        self.length = len(self.raw)
        self._refresh_body()

    def _refresh_body(self) -> None:
        self.body_raw = self.body_bytes()
        self.body_length = len(self.body_raw)

    def body_bytes(self) -> bytes:
        """Return the body encoded as JSON."""
        return _dumps(self.body)

    def body_stringify(self) -> str:
        """Return the cached body JSON as text."""
        return self.body_raw.decode("utf-8", "replace")

    def reset(self, is_async: bool, body: Any) -> None:
        """Replace the body, keeping the API name."""
        self.is_async = is_async
        self.body = body
        self._refresh()

    def out(self) -> bytes:
        """Return the message framed with its 4-byte length prefix."""
        return merge_bytes(int_to_bytes(self.length), self.raw)

    def parse(self, data: bytes) -> None:
        """Fill the message from JSON ``data``; raise ``ValueError`` if invalid."""
        self.raw = bytes(data)
        self.length = len(self.raw)
        obj = json.loads(self.raw)
        if obj is not None:
            if not isinstance(obj, dict):
                raise ValueError("message is not a JSON object")
            if "api" in obj:
                if not isinstance(obj["api"], str):
                    raise ValueError("api is not a string")
                self.api = obj["api"]
            if "body" in obj:
                self.body = obj["body"]
        self._refresh_body()

    def to_bytes(self) -> bytes:
        """Encode the whole message as JSON; a ``None`` body is left out."""
        obj: dict[str, Any] = {"api": self.api}
        if self.body is not None:
            obj["body"] = self.body
        return _dumps(obj)

    def stringify(self) -> str:
        """Return the cached message JSON as text."""
        return self.raw.decode("utf-8", "replace")

    def to_data(self) -> Any:
        """Return the body as plain JSON data."""
        return json.loads(self.body_raw) if self.body_raw else None


def new_message(api: str, data: Any) -> Message:
    """Create a message with its encodings computed."""
    message = Message(api, data)
    message._refresh()
    return message