"""Text recognition over saved screenshots (Tesseract through pytesseract)."""

from pathlib import Path
from typing import Optional, Union

import pytesseract
from PIL import Image

from ..errors import BrowserToolError

import logging
logger = logging.getLogger(__name__)


class OcrUnavailableError(BrowserToolError):
    code = "ocr_unavailable"


class OcrWorker:
    """
    Lazily checks for the Tesseract binary on first use and keeps the result
    for the session. ``release`` is called at session teardown.
    """

    def __init__(self, tesseract_cmd: Optional[str] = None):
        self.tesseract_cmd = tesseract_cmd
        self.version: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.version is not None

    def _ensure(self) -> None:
        if self.active:
            return
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        try:
            self.version = str(pytesseract.get_tesseract_version())
        except pytesseract.TesseractNotFoundError as e:
            raise OcrUnavailableError(f"Tesseract is not installed or not on PATH: {e}") from e
        logger.info(f"Text recognition ready (tesseract {self.version})")

    def recognize(self, path: Union[str, Path], language: str = "eng") -> str:
        self._ensure()
        with Image.open(path) as img:
            return pytesseract.image_to_string(img, lang=language).strip()

    def release(self) -> None:
        if self.active:
            logger.debug("Releasing text recognition worker")
        self.version = None
