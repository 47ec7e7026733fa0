"""Provider base classes."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol


@dataclass(frozen=True)
class UploadedImage:
    media_type: str
    data: str

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str) -> "UploadedImage":
        return cls(media_type=media_type, data=base64.b64encode(data).decode("ascii"))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass(frozen=True)
class EditRequest:
    image: UploadedImage
    prompt: str
    model: str | None = None


@dataclass(frozen=True)
class ResponsePart:
    image: UploadedImage | None = None
    text: str | None = None


@dataclass
class EditResponse:
    parts: list[ResponsePart]
    provider_request: Mapping[str, Any] = field(default_factory=dict)
    provider_response: Mapping[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


class EditProvider(Protocol):
    name: str

    async def edit(self, request: EditRequest) -> EditResponse:
        ...


class ProviderRegistry:
    def __init__(self, providers: Iterable[EditProvider]) -> None:
        self._providers = {provider.name: provider for provider in providers}

    def get(self, name: str) -> EditProvider | None:
        return self._providers.get(name)

    def list(self) -> list[str]:
        return sorted(self._providers.keys())
