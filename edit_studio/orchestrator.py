"""Edit request orchestration: one request per submission, settled into the session."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Sequence

from .errors import DecodeError, ValidationError
from .events import EventWriter
from .intake import decode_image
from .logging_config import get_logger
from .providers.base import EditProvider, EditRequest, EditResponse, UploadedImage
from .session import EditOutcome, SessionState
from .status import LOADING_MESSAGES, StatusRotation

logger = get_logger(__name__)

MISSING_INPUT_MESSAGE = "Please upload an image and provide an editing prompt."
NO_IMAGE_MESSAGE = "The model did not return an image. Please try a different prompt."
CANCELLED_MESSAGE = "The edit request was cancelled."
ALREADY_PENDING_MESSAGE = "An edit is already in progress."
UNREADABLE_RESULT_MESSAGE = "The model returned an image that could not be displayed. Please try again."


def interpret_response(response: EditResponse) -> EditOutcome:
    """Resolve the displayed image and caption from the response parts.

    Every image part overwrites the previous one, so with several image parts
    the last one in sequence order is shown. Text parts are concatenated in
    order. No image part at all is a failure even if text came back.
    """
    image: UploadedImage | None = None
    caption = ""
    for part in response.parts:
        if part.image is not None:
            image = part.image
        elif part.text:
            caption += part.text
    if image is None:
        return EditOutcome.failure(NO_IMAGE_MESSAGE)
    return EditOutcome.success(image, caption)


def describe_error(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
    return f"An error occurred: {message}"


class EditOrchestrator:
    def __init__(
        self,
        provider: EditProvider,
        *,
        model: str | None = None,
        messages: Sequence[str] = LOADING_MESSAGES,
        interval_s: float = 2.0,
        events: EventWriter | None = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.messages = tuple(messages)
        self.interval_s = interval_s
        self.events = events
        self._rotations: set[StatusRotation] = set()

    @property
    def active_rotations(self) -> int:
        return sum(1 for rotation in self._rotations if rotation.active)

    async def submit(
        self,
        session: SessionState,
        on_status: Callable[[str], None] | None = None,
    ) -> EditOutcome:
        image = session.image
        prompt = session.prompt.strip()
        if image is None or not prompt:
            raise ValidationError(MISSING_INPUT_MESSAGE)
        if session.pending:
            raise ValidationError(ALREADY_PENDING_MESSAGE)

        session.begin_submission()
        started = time.monotonic()
        self._emit(
            "edit_started",
            session,
            provider=self.provider.name,
            model=self.model,
            image_mime_type=image.media_type,
            prompt_chars=len(prompt),
        )
        logger.info(
            "edit started session=%s provider=%s model=%s media_type=%s prompt_chars=%d",
            session.session_id,
            self.provider.name,
            self.model,
            image.media_type,
            len(prompt),
        )
        outcome: EditOutcome | None = None
        try:
            rotation = StatusRotation(on_status, self.messages, self.interval_s)
            self._rotations.add(rotation)
            try:
                async with rotation:
                    outcome = await self._request(EditRequest(image=image, prompt=prompt, model=self.model))
            finally:
                self._rotations.discard(rotation)
        finally:
            if outcome is None:
                outcome = EditOutcome.failure(CANCELLED_MESSAGE)
            session.settle(outcome)
            self._record_outcome(session, outcome, time.monotonic() - started)
        return outcome

    async def _request(self, request: EditRequest) -> EditOutcome:
        try:
            response = await self.provider.edit(request)
        except Exception as exc:
            logger.exception("edit request failed provider=%s", self.provider.name)
            return EditOutcome.failure(describe_error(exc))
        for warning in response.warnings:
            logger.warning("provider warning: %s", warning)
        outcome = interpret_response(response)
        if outcome.image is not None:
            try:
                await asyncio.to_thread(decode_image, outcome.image)
            except DecodeError:
                logger.warning("undecodable %s image from provider=%s", outcome.image.media_type, self.provider.name)
                return EditOutcome.failure(UNREADABLE_RESULT_MESSAGE)
        return outcome

    def _record_outcome(self, session: SessionState, outcome: EditOutcome, elapsed_s: float) -> None:
        if outcome.error:
            logger.info("edit failed session=%s elapsed=%.2fs: %s", session.session_id, elapsed_s, outcome.error)
            self._emit("edit_failed", session, error=outcome.error, elapsed_s=elapsed_s)
            return
        logger.info("edit succeeded session=%s elapsed=%.2fs", session.session_id, elapsed_s)
        self._emit(
            "edit_succeeded",
            session,
            image_mime_type=outcome.image.media_type if outcome.image else None,
            caption_chars=len(outcome.caption or ""),
            elapsed_s=elapsed_s,
        )

    def _emit(self, event_type: str, session: SessionState, **payload: object) -> None:
        if self.events is None:
            return
        self.events.emit(event_type, session_id=session.session_id, **payload)
