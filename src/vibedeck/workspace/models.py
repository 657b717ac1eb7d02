"""Data models for the conversation and the simulated workspace.

These models define the shape of messages, terminal lines, attachments and
the three workspace surfaces, independent of how they are displayed.
"""

import asyncio
import json
import mimetypes
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..config import ATTACHMENT_HANDLE_SCHEME, BROWSER_DEFAULT_TITLE, DEFAULT_MIME_TYPE


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class Severity(str, Enum):
    """Severity of a terminal line."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    COMMAND = "command"


class Attachment(BaseModel):
    """A file staged for sending to the model.

    The payload is either held in memory (``data``) or read lazily from
    ``path`` when the message is sent.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    mime_type: str = DEFAULT_MIME_TYPE
    path: Path | None = None
    data: bytes | None = None
    handle: str = Field(default_factory=lambda: f"{ATTACHMENT_HANDLE_SCHEME}{uuid4()}")

    @classmethod
    def from_path(cls, path: str | Path) -> "Attachment":
        """Stage a file from disk, guessing its mime type from the name."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, mime_type=mime_type or DEFAULT_MIME_TYPE, path=path)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    async def read(self) -> bytes:
        """Return the binary payload.

        Raises:
            OSError: If the backing file cannot be read
            ValueError: If the attachment has neither data nor a path
        """
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError("attachment has no payload")
        return await asyncio.to_thread(self.path.read_bytes)


class Message(BaseModel):
    """A chat message. Immutable once appended to the conversation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_now)
    is_error: bool = False
    attachments: tuple[Attachment, ...] = ()


class TerminalLine(BaseModel):
    """One line of the simulated terminal log."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    content: str
    severity: Severity = Severity.INFO
    timestamp: datetime = Field(default_factory=_now)


class WebSource(BaseModel):
    """A web citation attached to a model response."""

    model_config = ConfigDict(frozen=True)

    uri: str = ""
    title: str = ""


class SurfaceKind(str, Enum):
    """The three workspace views."""

    TERMINAL = "terminal"
    BROWSER = "browser"
    PREVIEW = "preview"


class TerminalSurface(BaseModel):
    """Terminal view. Renders the log and holds no state of its own."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["terminal"] = "terminal"


class BrowserSurface(BaseModel):
    """Simulated browser view."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["browser"] = "browser"
    url: str = ""
    is_loading: bool = False
    title: str = BROWSER_DEFAULT_TITLE
    content: str | None = None

    def search_results(self) -> list[WebSource]:
        """Decode ``content`` when it holds a serialized citation list."""
        if not self.content or not self.content.startswith("["):
            return []
        try:
            raw: list[dict[str, Any]] = json.loads(self.content)
        except json.JSONDecodeError:
            return []
        return [WebSource(**item) for item in raw if isinstance(item, dict)]


class PreviewSurface(BaseModel):
    """Rendered-HTML preview view."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["preview"] = "preview"
    html: str = ""
    is_active: bool = False
    last_updated: datetime | None = None


Surface = TerminalSurface | BrowserSurface | PreviewSurface


class Workspace(BaseModel):
    """The three surface variants plus the selector of the visible one."""

    model_config = ConfigDict(frozen=True)

    terminal: TerminalSurface = Field(default_factory=TerminalSurface)
    browser: BrowserSurface = Field(default_factory=BrowserSurface)
    preview: PreviewSurface = Field(default_factory=PreviewSurface)
    active: SurfaceKind = SurfaceKind.TERMINAL
    is_open: bool = False

    @property
    def active_surface(self) -> Surface:
        """Get the variant selected by ``active``."""
        return {
            SurfaceKind.TERMINAL: self.terminal,
            SurfaceKind.BROWSER: self.browser,
            SurfaceKind.PREVIEW: self.preview,
        }[self.active]
