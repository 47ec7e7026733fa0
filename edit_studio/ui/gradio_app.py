"""
Gradio web UI for Edit Studio.

Single page: upload an image (picker or drag-and-drop), type an editing
prompt, press Edit. While the request is pending the Edit button is disabled
and a loader cycles through status messages; the settled result replaces the
loader with either the edited image (plus caption) or an error.
"""

from __future__ import annotations

import asyncio
import html
from typing import Any, AsyncIterator

import gradio as gr
from PIL import Image

from ..config import StudioConfig
from ..errors import DecodeError, StudioError, ValidationError
from ..events import EventWriter
from ..intake import accept_upload, decode_image
from ..logging_config import get_logger
from ..orchestrator import EditOrchestrator
from ..presentation import Frame, render
from ..providers import default_registry
from ..providers.base import EditProvider, UploadedImage
from ..session import SessionState

logger = get_logger(__name__)

PAGE_TITLE = "Edit Studio – image editing with Gemini"
PROMPT_PLACEHOLDER = "Describe the edit, e.g. make the sky purple"


def image_to_pil(image: UploadedImage) -> Image.Image:
    return decode_image(image)


def loader_html(message: str | None) -> str:
    text = html.escape(message or "")
    return f'<div class="edit-loader" style="padding: 1rem;"><p>&#8987; {text}</p></div>'


def error_html(message: str | None) -> str:
    return f'<div class="edit-error" style="color: #b3261e; padding: 1rem;">{html.escape(message or "")}</div>'


def frame_updates(frame: Frame) -> tuple[Any, Any, Any, Any]:
    """Updates for (loader, error, result image, caption); every output is set on every render."""
    return (
        gr.update(value=loader_html(frame.status_message) if frame.loading else "", visible=frame.loading),
        gr.update(value=error_html(frame.error) if frame.error is not None else "", visible=frame.error is not None),
        gr.update(
            value=image_to_pil(frame.image) if frame.image is not None else None,
            visible=frame.image is not None,
        ),
        gr.update(value=frame.caption or "", visible=frame.caption is not None),
    )


class EditStudioApp:
    def __init__(self, config: StudioConfig, orchestrator: EditOrchestrator) -> None:
        self.config = config
        self.orchestrator = orchestrator

    def new_session(self) -> SessionState:
        return SessionState(prompt=self.config.default_prompt)

    async def on_upload(self, path: str | None, session: SessionState) -> tuple[Any, SessionState, Any]:
        if not path:
            return gr.update(), session, gr.update(interactive=session.ready)
        try:
            image = await accept_upload(session, path)
        except StudioError as exc:
            raise gr.Error(exc.message) from exc
        return gr.update(value=image_to_pil(image), visible=True), session, gr.update(interactive=session.ready)

    def on_prompt_change(self, text: str | None, session: SessionState) -> tuple[SessionState, Any]:
        session.set_prompt(text)
        return session, gr.update(interactive=session.ready)

    async def on_edit(self, session: SessionState) -> AsyncIterator[tuple[Any, ...]]:
        statuses: asyncio.Queue[str] = asyncio.Queue()
        task = asyncio.create_task(self.orchestrator.submit(session, on_status=statuses.put_nowait))
        while True:
            getter = asyncio.ensure_future(statuses.get())
            done, _ = await asyncio.wait({task, getter}, return_when=asyncio.FIRST_COMPLETED)
            if task in done:
                getter.cancel()
                break
            yield self._outputs(session, getter.result())
        try:
            task.result()
        except ValidationError as exc:
            if session.pending:
                raise gr.Error(exc.message) from exc
            session.fail(exc.message)
        try:
            final = self._outputs(session)
        except DecodeError as exc:
            session.fail(exc.message)
            final = self._outputs(session)
        yield final

    def _outputs(self, session: SessionState, status_message: str | None = None) -> tuple[Any, ...]:
        frame = render(session, status_message)
        return (session, gr.update(interactive=session.ready), *frame_updates(frame))

    def build(self) -> gr.Blocks:
        with gr.Blocks(title=PAGE_TITLE) as app:
            session_state = gr.State(value=self.new_session)
            gr.Markdown("## Edit Studio\nUpload an image, describe the change, and let the model edit it.")
            with gr.Row():
                with gr.Column():
                    upload = gr.File(label="Upload an image (PNG, JPG, WEBP)", file_count="single", type="filepath")
                    preview = gr.Image(label="Preview", type="pil", format="png", interactive=False)
                    prompt = gr.Textbox(
                        label="Editing prompt",
                        lines=3,
                        value=self.config.default_prompt,
                        placeholder=PROMPT_PLACEHOLDER,
                    )
                    edit_btn = gr.Button("Edit image", variant="primary", interactive=False)
                with gr.Column():
                    loader = gr.HTML(visible=False)
                    error_box = gr.HTML(visible=False)
                    result = gr.Image(
                        label="Edited image",
                        type="pil",
                        format="png",
                        interactive=False,
                        visible=False,
                    )
                    caption = gr.Textbox(label="Model notes", interactive=False, visible=False)

            upload.upload(
                self.on_upload,
                inputs=[upload, session_state],
                outputs=[preview, session_state, edit_btn],
            )
            prompt.change(
                self.on_prompt_change,
                inputs=[prompt, session_state],
                outputs=[session_state, edit_btn],
            )
            edit_btn.click(
                self.on_edit,
                inputs=[session_state],
                outputs=[session_state, edit_btn, loader, error_box, result, caption],
                concurrency_limit=None,
            )
        return app


def build_provider(config: StudioConfig) -> EditProvider:
    registry = default_registry(api_key=config.api_key)
    provider = registry.get(config.provider)
    if provider is None:
        raise ValueError(f"Unknown provider {config.provider!r}; expected one of {', '.join(registry.list())}.")
    return provider


def create_app(config: StudioConfig, provider: EditProvider | None = None) -> EditStudioApp:
    events = EventWriter(config.events_path) if config.events_path else None
    orchestrator = EditOrchestrator(
        provider or build_provider(config),
        model=config.model,
        interval_s=config.status_interval_s,
        events=events,
    )
    return EditStudioApp(config, orchestrator)


def launch(config: StudioConfig) -> None:
    studio = create_app(config)
    logger.info(
        "launching UI host=%s port=%s provider=%s model=%s",
        config.host,
        config.port,
        studio.orchestrator.provider.name,
        config.model,
    )
    app = studio.build()
    app.queue()
    app.launch(server_name=config.host, server_port=config.port)
