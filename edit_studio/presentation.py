"""Render session state into exactly one of loader, error or result."""

from __future__ import annotations

from dataclasses import dataclass

from .providers.base import UploadedImage
from .session import SessionState, UIState


@dataclass(frozen=True)
class Frame:
    loading: bool = False
    status_message: str | None = None
    error: str | None = None
    image: UploadedImage | None = None
    caption: str | None = None


def render(session: SessionState, status_message: str | None = None) -> Frame:
    if session.ui_state is UIState.PENDING:
        return Frame(loading=True, status_message=status_message)
    if session.ui_state is UIState.FAILED:
        return Frame(error=session.error or "")
    if session.ui_state is UIState.SUCCESS and session.result_image is not None:
        return Frame(image=session.result_image, caption=session.caption or None)
    return Frame()
