"""Dry-run edit provider (offline, no credential)."""

from __future__ import annotations

import asyncio
import hashlib
import io
import time
from typing import Any

from PIL import Image, ImageDraw, ImageFont, ImageOps

from .base import EditRequest, EditResponse, ResponsePart, UploadedImage


class DryRunProvider:
    name = "dryrun"

    def __init__(self, delay_s: float = 0.0) -> None:
        self.delay_s = max(0.0, delay_s)
        self._font = None

    async def edit(self, request: EditRequest) -> EditResponse:
        start = time.monotonic()
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        png_bytes, size = await asyncio.to_thread(self._render, request)
        elapsed = time.monotonic() - start
        provider_request: dict[str, Any] = {
            "prompt": request.prompt,
            "model": request.model,
            "image_mime_type": request.image.media_type,
        }
        provider_response: dict[str, Any] = {
            "elapsed": elapsed,
            "width": size[0],
            "height": size[1],
        }
        return EditResponse(
            parts=[
                ResponsePart(image=UploadedImage.from_bytes(png_bytes, "image/png")),
                ResponsePart(text=f"Dry run: {request.prompt}"),
            ],
            provider_request=provider_request,
            provider_response=provider_response,
        )

    def _render(self, request: EditRequest) -> tuple[bytes, tuple[int, int]]:
        with Image.open(io.BytesIO(request.image.to_bytes())) as source:
            image = ImageOps.exif_transpose(source).convert("RGB")
        tint = Image.new("RGB", image.size, _color_from_prompt(request.prompt))
        image = Image.blend(image, tint, 0.35)
        draw = ImageDraw.Draw(image)
        font = self._font or ImageFont.load_default()
        draw.text((12, 12), f"dryrun\n{request.prompt[:60]}", fill=(255, 255, 255), font=font)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue(), image.size


def _color_from_prompt(prompt: str) -> tuple[int, int, int]:
    digest = hashlib.sha256(prompt.encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]
