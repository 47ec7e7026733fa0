"""Per-browser-session state for the editor."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from .providers.base import UploadedImage


class UIState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class EditOutcome:
    state: UIState
    image: UploadedImage | None = None
    caption: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, image: UploadedImage, caption: str | None = None) -> "EditOutcome":
        return cls(state=UIState.SUCCESS, image=image, caption=caption or None)

    @classmethod
    def failure(cls, message: str) -> "EditOutcome":
        return cls(state=UIState.FAILED, error=message)


@dataclass
class SessionState:
    """Uploaded image, prompt and the outcome of the last submission.

    ``ready`` is derived on every read and never stored, so the Edit button
    and the orchestrator agree on when a submission is allowed.
    """

    image: UploadedImage | None = None
    prompt: str = ""
    ui_state: UIState = UIState.IDLE
    result_image: UploadedImage | None = None
    caption: str | None = None
    error: str | None = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def pending(self) -> bool:
        return self.ui_state is UIState.PENDING

    @property
    def ready(self) -> bool:
        return self.image is not None and bool(self.prompt.strip()) and not self.pending

    def replace_image(self, image: UploadedImage) -> None:
        self.image = image
        self._reset_after_input()

    def set_prompt(self, text: str | None) -> None:
        self.prompt = text or ""
        self._reset_after_input()

    def begin_submission(self) -> None:
        if self.pending:
            raise RuntimeError("A submission is already pending.")
        self.ui_state = UIState.PENDING
        self.result_image = None
        self.caption = None
        self.error = None

    def settle(self, outcome: EditOutcome) -> None:
        self.ui_state = outcome.state
        self.result_image = outcome.image
        self.caption = outcome.caption
        self.error = outcome.error

    def fail(self, message: str) -> None:
        self.settle(EditOutcome.failure(message))

    def _reset_after_input(self) -> None:
        # Result fields stay on screen; only the state machine returns to idle.
        if self.ui_state in (UIState.SUCCESS, UIState.FAILED):
            self.ui_state = UIState.IDLE
