from __future__ import annotations

import asyncio
import io
import zlib
from pathlib import Path
from typing import Any

import gradio as gr
import pytest
from PIL import Image

from edit_studio.config import StudioConfig
from edit_studio.errors import ValidationError
from edit_studio.orchestrator import ALREADY_PENDING_MESSAGE, MISSING_INPUT_MESSAGE, UNREADABLE_RESULT_MESSAGE
from edit_studio.presentation import Frame
from edit_studio.providers.base import EditRequest, EditResponse, ResponsePart, UploadedImage
from edit_studio.session import SessionState, UIState
from edit_studio.ui.gradio_app import (
    EditStudioApp,
    build_provider,
    create_app,
    error_html,
    frame_updates,
    loader_html,
)


def _png_bytes(color: tuple[int, int, int] = (0, 128, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format="PNG")
    return buffer.getvalue()


class SlowProvider:
    name = "slow"

    def __init__(self, parts: list[ResponsePart], delay_s: float = 0.08) -> None:
        self.parts = parts
        self.delay_s = delay_s

    async def edit(self, request: EditRequest) -> EditResponse:
        await asyncio.sleep(self.delay_s)
        return EditResponse(parts=self.parts)


def _studio(provider: Any, **config: Any) -> EditStudioApp:
    return create_app(StudioConfig(status_interval_s=0.01, **config), provider=provider)


def _collect(studio: EditStudioApp, session: SessionState) -> list[tuple[Any, ...]]:
    async def run() -> list[tuple[Any, ...]]:
        return [outputs async for outputs in studio.on_edit(session)]

    return asyncio.run(run())


def test_loader_and_error_html_escape_text() -> None:
    assert "&lt;b&gt;" in loader_html("<b>")
    assert "&lt;script&gt;" in error_html("<script>")


def test_frame_updates_show_one_view() -> None:
    loader, error, result, caption = frame_updates(Frame(loading=True, status_message="Almost there..."))
    assert loader["visible"] is True
    assert "Almost there..." in loader["value"]
    assert error["visible"] is False
    assert result["visible"] is False
    assert result["value"] is None
    assert caption["visible"] is False

    loader, error, result, caption = frame_updates(Frame(error="An error occurred: X"))
    assert loader["visible"] is False
    assert error["visible"] is True
    assert result["visible"] is False
    assert caption["visible"] is False


def test_prompt_change_updates_button() -> None:
    studio = _studio(SlowProvider([]))
    session = SessionState(image=UploadedImage.from_bytes(_png_bytes(), "image/png"))

    session, button = studio.on_prompt_change("add a rainbow", session)
    assert session.prompt == "add a rainbow"
    assert button["interactive"] is True

    session, button = studio.on_prompt_change("   ", session)
    assert button["interactive"] is False


def test_new_session_uses_default_prompt() -> None:
    studio = _studio(SlowProvider([]), default_prompt="Change the background to a dance hall.")
    first = studio.new_session()
    second = studio.new_session()
    assert first.prompt == "Change the background to a dance hall."
    assert first is not second
    assert first.ready is False


def test_upload_accepts_image_and_rejects_other_files(tmp_path: Path) -> None:
    studio = _studio(SlowProvider([]))
    session = SessionState(prompt="add a rainbow")
    image_path = tmp_path / "photo.png"
    image_path.write_bytes(_png_bytes())
    text_path = tmp_path / "notes.txt"
    text_path.write_text("hello", encoding="utf-8")

    preview, session, button = asyncio.run(studio.on_upload(str(image_path), session))
    assert preview["visible"] is True
    assert isinstance(preview["value"], Image.Image)
    assert button["interactive"] is True
    accepted = session.image

    with pytest.raises(gr.Error):
        asyncio.run(studio.on_upload(str(text_path), session))
    assert session.image is accepted


def test_upload_with_no_file_changes_nothing() -> None:
    studio = _studio(SlowProvider([]))
    session = SessionState()
    preview, returned, button = asyncio.run(studio.on_upload(None, session))
    assert returned is session
    assert "value" not in preview
    assert button["interactive"] is False


def test_edit_disables_button_while_pending_then_shows_result() -> None:
    output_png = _png_bytes((255, 0, 255))
    provider = SlowProvider(
        [ResponsePart(image=UploadedImage.from_bytes(output_png, "image/png")), ResponsePart(text="Sky recolored")]
    )
    studio = _studio(provider)
    session = SessionState(image=UploadedImage.from_bytes(_png_bytes(), "image/png"), prompt="make the sky purple")

    outputs = _collect(studio, session)

    assert len(outputs) >= 2
    for pending in outputs[:-1]:
        _, button, loader, error, result, caption = pending
        assert button["interactive"] is False
        assert loader["visible"] is True
        assert error["visible"] is False
        assert result["visible"] is False
        assert caption["visible"] is False
    _, button, loader, error, result, caption = outputs[-1]
    assert button["interactive"] is True
    assert loader["visible"] is False
    assert error["visible"] is False
    assert result["visible"] is True
    assert result["value"].getpixel((0, 0))[:3] == (255, 0, 255)
    assert caption == gr.update(value="Sky recolored", visible=True)
    assert session.ui_state is UIState.SUCCESS
    assert studio.orchestrator.active_rotations == 0


def test_edit_without_image_shows_validation_error() -> None:
    studio = _studio(SlowProvider([]))
    session = SessionState(prompt="make the sky purple")

    outputs = _collect(studio, session)

    assert len(outputs) == 1
    _, button, loader, error, result, caption = outputs[0]
    assert error["visible"] is True
    assert MISSING_INPUT_MESSAGE in error["value"]
    assert loader["visible"] is False
    assert result["visible"] is False
    assert button["interactive"] is False
    assert session.ui_state is UIState.FAILED


def test_build_provider_rejects_unknown_name() -> None:
    with pytest.raises(ValueError, match="Unknown provider"):
        build_provider(StudioConfig(provider="nope"))
    assert build_provider(StudioConfig(provider="dryrun")).name == "dryrun"


def test_build_returns_blocks() -> None:
    studio = _studio(SlowProvider([]))
    assert isinstance(studio.build(), gr.Blocks)


def test_validation_error_is_a_studio_error() -> None:
    assert ValidationError("x").message == "x"


def test_edit_with_undecodable_result_settles_with_error() -> None:
    garbage = UploadedImage.from_bytes(b"\x89PNG\r\n\x1a\ntruncated", "image/png")
    studio = _studio(SlowProvider([ResponsePart(image=garbage)], delay_s=0.02))
    session = SessionState(image=UploadedImage.from_bytes(_png_bytes(), "image/png"), prompt="make the sky purple")

    outputs = _collect(studio, session)

    _, button, loader, error, result, caption = outputs[-1]
    assert loader["visible"] is False
    assert error["visible"] is True
    assert UNREADABLE_RESULT_MESSAGE in error["value"]
    assert result["visible"] is False
    assert button["interactive"] is True
    assert session.ui_state is UIState.FAILED


def test_edit_while_pending_is_refused_without_touching_session() -> None:
    studio = _studio(SlowProvider([]))
    session = SessionState(image=UploadedImage.from_bytes(_png_bytes(), "image/png"), prompt="make the sky purple")
    session.begin_submission()

    with pytest.raises(gr.Error, match=ALREADY_PENDING_MESSAGE):
        _collect(studio, session)

    assert session.ui_state is UIState.PENDING
    assert session.error is None


def test_upload_with_corrupt_pixel_data_raises_and_keeps_image(tmp_path: Path) -> None:
    studio = _studio(SlowProvider([]))
    previous = UploadedImage.from_bytes(_png_bytes(), "image/png")
    session = SessionState(image=previous, prompt="add a rainbow")
    raw = _png_bytes()
    start = raw.index(b"IDAT") - 4
    length = int.from_bytes(raw[start : start + 4], "big")
    body = bytes(b ^ 0x5A for b in raw[start + 8 : start + 8 + length])
    chunk = raw[start : start + 8] + body + zlib.crc32(b"IDAT" + body).to_bytes(4, "big")
    path = tmp_path / "corrupt.png"
    path.write_bytes(raw[:start] + chunk + raw[start + 12 + length :])

    with pytest.raises(gr.Error):
        asyncio.run(studio.on_upload(str(path), session))
    assert session.image is previous


def test_edit_event_is_not_limited_by_the_shared_queue() -> None:
    studio = _studio(SlowProvider([]))
    app = studio.build()
    fns = app.fns.values() if isinstance(app.fns, dict) else app.fns
    edit = [fn for fn in fns if getattr(fn, "name", None) == "on_edit"]

    assert len(edit) == 1
    assert edit[0].concurrency_limit is None
