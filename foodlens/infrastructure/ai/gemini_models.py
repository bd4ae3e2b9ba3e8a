"""
Gemini generateContent wire models.

Typed request/response bodies for the REST endpoint. Requests are
serialized with ``to_payload()``; responses are validated loosely so
that fields Gemini adds over time never break parsing.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from foodlens.domain.shared.inference import GenerationSettings


class InlineData(BaseModel):
    """Base64 encoded binary attachment."""

    mime_type: str = Field("image/jpeg", description="Attachment MIME type")
    data: str = Field(..., description="Base64 payload")

    def __repr__(self) -> str:
        # Payloads are large and must never end up in logs
        return f"InlineData(mime_type={self.mime_type!r}, data=<{len(self.data)} chars>)"


class Part(BaseModel):
    """One part of a content block: text or inline data."""

    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None


class Content(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Optional[str] = None
    parts: List[Part] = Field(default_factory=list)


class GenerationConfig(BaseModel):
    """Sampling parameters in Gemini's camelCase wire format."""

    model_config = ConfigDict(populate_by_name=True)

    temperature: float
    max_output_tokens: int = Field(..., alias="maxOutputTokens")
    top_p: Optional[float] = Field(None, alias="topP")
    top_k: Optional[int] = Field(None, alias="topK")

    @classmethod
    def from_settings(cls, settings: GenerationSettings) -> GenerationConfig:
        return cls(
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
            top_p=settings.top_p,
            top_k=settings.top_k,
        )


class GenerateContentRequest(BaseModel):
    """
    Request body for ``{model}:generateContent``.

    Example:
        >>> request = GenerateContentRequest.single_turn(
        ...     "Analyze this product", settings=ANALYSIS_GENERATION
        ... )
        >>> request.to_payload()["generationConfig"]["maxOutputTokens"]
        1000
    """

    model_config = ConfigDict(populate_by_name=True)

    contents: List[Content]
    generation_config: Optional[GenerationConfig] = Field(None, alias="generationConfig")

    @classmethod
    def single_turn(
        cls,
        prompt: str,
        settings: GenerationSettings,
        image_base64: Optional[str] = None,
        mime_type: str = "image/jpeg",
    ) -> GenerateContentRequest:
        """Build a one-message request, text first then the image."""
        parts = [Part(text=prompt)]
        if image_base64 is not None:
            parts.append(Part(inline_data=InlineData(mime_type=mime_type, data=image_base64)))
        return cls(
            contents=[Content(parts=parts)],
            generation_config=GenerationConfig.from_settings(settings),
        )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(None, alias="finishReason")


class GenerateContentResponse(BaseModel):
    """Response body; only candidates are read."""

    model_config = ConfigDict(extra="ignore")

    candidates: List[Candidate] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        """Text of the first part of the first candidate, if any."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        text = content.parts[0].text
        return text if text else None
