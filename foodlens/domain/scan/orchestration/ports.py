"""
Ports (Interfaces) for Analysis Orchestration Dependencies.

Defines abstract interfaces for the external services used by the
AnalysisOrchestrator, so the application layer never imports the
concrete OpenFoodFacts, Gemini or pyzbar adapters.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from typing import Optional, Protocol, runtime_checkable

from foodlens.domain.scan.product.models import ProductRecord
from foodlens.domain.shared.inference import IInferenceClient, ImageInput
from foodlens.domain.shared.value_objects import Barcode

__all__ = ["IBarcodeDetector", "IProductCatalog", "IInferenceClient"]


@runtime_checkable
class IBarcodeDetector(Protocol):
    """
    Port for barcode detection in a still image.

    Never raises for undecodable images: "nothing found" and "decoder
    failed" both return None.
    """

    def detect(self, image: ImageInput) -> Optional[Barcode]:
        """
        Decode the first supported barcode in the image.

        Args:
            image: Encoded bytes or decoded Pillow image

        Returns:
            First decoded barcode, or None
        """
        ...


@runtime_checkable
class IProductCatalog(Protocol):
    """
    Port for the nutrition database.

    Distinguishes "not found" (None) from transport failure (raised).
    """

    async def fetch(self, barcode: Barcode) -> Optional[ProductRecord]:
        """
        Look up product data by barcode.

        Args:
            barcode: Product barcode

        Returns:
            ProductRecord, or None if the catalog has no such product

        Raises:
            TransportError: On network, HTTP or body errors
        """
        ...
