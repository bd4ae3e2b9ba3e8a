"""
Barcode detection with pyzbar.

Decodes retail and matrix codes from still images. The zbar decoder is
resolved lazily so the module imports without the native library.
"""

from functools import partial
from typing import Any, Callable, Optional, Sequence

import structlog
from PIL import Image

from foodlens.domain.shared.errors import DetectionError, InvalidImageError
from foodlens.domain.shared.inference import ImageInput
from foodlens.domain.shared.value_objects import Barcode, Symbology
from foodlens.infrastructure.vision.images import load_image

logger = structlog.get_logger(__name__)

# pyzbar.decode-compatible callable: image -> decoded objects with .data/.type
Decoder = Callable[[Image.Image], Sequence[Any]]

# Symbology values match pyzbar's ZBarSymbol names
SUPPORTED_SYMBOLOGIES = tuple(Symbology)


def pyzbar_decoder() -> Decoder:
    """pyzbar.decode restricted to the supported symbologies."""
    from pyzbar.pyzbar import ZBarSymbol, decode

    symbols = [ZBarSymbol[symbology.value] for symbology in SUPPORTED_SYMBOLOGIES]
    return partial(decode, symbols=symbols)


class BarcodeDetector:
    """
    Implements the IBarcodeDetector port.

    The first supported observation wins; there is no re-ranking when
    an image holds several codes.

    Example:
        >>> detector = BarcodeDetector()
        >>> barcode = detector.detect(open("can.jpg", "rb").read())
        >>> barcode.value if barcode else None
        '5000112637922'
    """

    def __init__(self, decoder: Optional[Decoder] = None) -> None:
        self._decoder = decoder

    @property
    def decoder(self) -> Decoder:
        if self._decoder is None:
            self._decoder = pyzbar_decoder()
        return self._decoder

    def detect(self, image: ImageInput) -> Optional[Barcode]:
        """Decode the first supported barcode, or None.

        Decoder failures are logged and reported as "no barcode".
        """
        try:
            return self.detect_or_raise(image)
        except DetectionError as e:
            logger.warning("Barcode detection failed", error=str(e))
            return None

    def detect_or_raise(self, image: ImageInput) -> Optional[Barcode]:
        """
        Decode the first supported barcode.

        Returns:
            Barcode, or None when the image holds no readable code

        Raises:
            DetectionError: If the image cannot be decoded or zbar fails
        """
        try:
            decoded = load_image(image)
        except InvalidImageError as e:
            raise DetectionError(str(e)) from e

        try:
            observations = self.decoder(decoded)
        except Exception as e:
            raise DetectionError(f"Barcode decoder failed: {e}") from e

        supported = [obs for obs in observations if _symbology(obs) is not None]
        if not supported:
            logger.debug("No barcode in image", size=decoded.size)
            return None

        first = supported[0]
        payload = _payload(first)
        if payload is None:
            logger.warning("Barcode payload unreadable", symbology=_symbology(first))
            return None

        barcode = Barcode(value=payload, symbology=_symbology(first))
        logger.info(
            "Barcode detected",
            barcode=barcode.value,
            symbology=barcode.symbology,
            observations=len(supported),
        )
        return barcode


def _symbology(observation: Any) -> Optional[Symbology]:
    try:
        return Symbology(str(getattr(observation, "type", "")))
    except ValueError:
        return None


def _payload(observation: Any) -> Optional[str]:
    data = getattr(observation, "data", None)
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(data, str) or not data.strip():
        return None
    return data.strip()
