"""
Generative inference port.

Shared by the analysis orchestrator and the chat service: both send a
prompt (optionally with an image) and get free text back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from PIL.Image import Image

# Raw encoded bytes (JPEG, PNG, HEIC...) or an already decoded Pillow image
ImageInput = Union[bytes, "Image"]


class GenerationSettings(BaseModel):
    """Sampling parameters for one inference call.

    Example:
        >>> ANALYSIS = GenerationSettings(temperature=0.3, max_output_tokens=1000)
    """

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(0.3, ge=0.0, le=2.0)
    max_output_tokens: int = Field(1000, gt=0)
    top_p: Optional[float] = Field(None, gt=0.0, le=1.0)
    top_k: Optional[int] = Field(None, gt=0)


ANALYSIS_GENERATION = GenerationSettings(temperature=0.3, max_output_tokens=1000)
CHAT_GENERATION = GenerationSettings(temperature=0.7, max_output_tokens=1000, top_p=0.9, top_k=40)


@runtime_checkable
class IInferenceClient(Protocol):
    """
    Port for the generative inference service.

    Implementations return the text of the first candidate.
    """

    async def generate(
        self,
        prompt: str,
        image: Optional[ImageInput] = None,
        settings: Optional[GenerationSettings] = None,
    ) -> str:
        """
        Run one inference call.

        Args:
            prompt: Instruction text
            image: Image to attach inline, if any
            settings: Sampling parameters (implementation default if None)

        Returns:
            Text of the first candidate

        Raises:
            TransportError: Network/HTTP failure
            InvalidImageError: Image cannot be prepared for upload
            ModelResponseError: No usable candidate text
        """
        ...
