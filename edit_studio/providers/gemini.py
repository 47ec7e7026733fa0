"""Gemini image-editing provider."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from google import genai
from google.genai import types

from ..config import API_KEY_ENV_VARS, DEFAULT_IMAGE_MODEL
from ..logging_config import get_logger
from ..utils import getenv_str
from .base import EditRequest, EditResponse, ResponsePart, UploadedImage

logger = get_logger(__name__)

RESPONSE_MODALITIES = ("IMAGE", "TEXT")
FALLBACK_IMAGE_MIME_TYPE = "image/png"


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str | None = None, client: Any | None = None) -> None:
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        api_key = self._api_key or getenv_str(*API_KEY_ENV_VARS)
        if not api_key:
            raise RuntimeError("API_KEY, GEMINI_API_KEY or GOOGLE_API_KEY not set.")
        self._client = genai.Client(api_key=api_key)
        return self._client

    async def edit(self, request: EditRequest) -> EditResponse:
        client = self._get_client()
        model = request.model or DEFAULT_IMAGE_MODEL
        contents = build_contents(request)
        config = build_content_config()
        raw_request = {
            "model": model,
            "prompt": request.prompt,
            "image_mime_type": request.image.media_type,
            "config": {"response_modalities": list(RESPONSE_MODALITIES)},
        }
        logger.debug("gemini generate_content model=%s parts=%d", model, len(contents.parts or []))
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=config,
        )
        parts = parts_from_response(response)
        raw_response = {
            "model": model,
            "candidates": len(getattr(response, "candidates", None) or []),
            "parts": [_describe_part(part) for part in parts],
        }
        usage = _extract_usage_summary(response)
        if usage:
            raw_response["usage"] = usage
        return EditResponse(parts=parts, provider_request=raw_request, provider_response=raw_response)


def build_contents(request: EditRequest) -> types.Content:
    """Inline image first, trimmed prompt second."""
    return types.Content(
        role="user",
        parts=[
            types.Part(
                inline_data=types.Blob(
                    data=request.image.to_bytes(),
                    mime_type=request.image.media_type,
                )
            ),
            types.Part(text=request.prompt.strip()),
        ],
    )


def build_content_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(response_modalities=list(RESPONSE_MODALITIES))


def parts_from_response(response: Any) -> list[ResponsePart]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    raw_parts: Sequence[Any] = getattr(content, "parts", None) or []
    parts: list[ResponsePart] = []
    for part in raw_parts:
        inline_data = getattr(part, "inline_data", None)
        data = getattr(inline_data, "data", None) if inline_data else None
        if data is not None:
            mime_type = getattr(inline_data, "mime_type", None) or FALLBACK_IMAGE_MIME_TYPE
            if isinstance(data, str):
                parts.append(ResponsePart(image=UploadedImage(media_type=mime_type, data=data)))
            else:
                parts.append(ResponsePart(image=UploadedImage.from_bytes(bytes(data), mime_type)))
            continue
        text = getattr(part, "text", None)
        if text:
            parts.append(ResponsePart(text=text))
    return parts


def _describe_part(part: ResponsePart) -> dict[str, Any]:
    if part.image is not None:
        return {"kind": "image", "mime_type": part.image.media_type, "b64_chars": len(part.image.data)}
    return {"kind": "text", "chars": len(part.text or "")}


def _extract_usage_summary(response: Any) -> Mapping[str, Any] | None:
    raw = getattr(response, "usage_metadata", None)
    if raw is None:
        return None
    if hasattr(raw, "model_dump"):
        dumped = raw.model_dump(exclude_none=True)
        return dumped if isinstance(dumped, Mapping) else None
    if isinstance(raw, Mapping):
        return dict(raw)
    return None
