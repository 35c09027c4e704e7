"""Extract text from screenshots: local Tesseract or Google Cloud Vision."""
from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import pytesseract
import requests
from PIL import Image

from autoapply.errors import ConfigurationError, ProviderError
from autoapply.log import get_logger

log = get_logger(__name__)

VISION_URL = "https://vision.googleapis.com/v1/images:annotate"
REQUEST_TIMEOUT = 60


class OCRProvider(ABC):
    name: str = ""

    @abstractmethod
    def extract_text(self, image_path: Path) -> str:
        pass


class TesseractOCR(OCRProvider):
    name = "tesseract"

    def __init__(self, lang: str = "eng", timeout: int = REQUEST_TIMEOUT) -> None:
        self.lang = lang
        self.timeout = timeout

    def extract_text(self, image_path: Path) -> str:
        try:
            with Image.open(image_path) as img:
                return pytesseract.image_to_string(img, lang=self.lang, timeout=self.timeout)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError, OSError) as exc:
            # pytesseract signals a timeout with a bare RuntimeError
            raise ProviderError(self.name, str(exc)) from exc


class GoogleVisionOCR(OCRProvider):
    name = "google"

    def __init__(self, api_key: str, timeout: int = REQUEST_TIMEOUT) -> None:
        self.api_key = api_key
        self.timeout = timeout

    def extract_text(self, image_path: Path) -> str:
        content = base64.b64encode(Path(image_path).read_bytes()).decode("ascii")
        payload = {
            "requests": [{
                "image": {"content": content},
                "features": [{"type": "TEXT_DETECTION"}],
            }]
        }
        try:
            r = requests.post(VISION_URL, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(self.name, str(exc)) from exc
        if not r.ok:
            raise ProviderError(self.name, r.text[:300], status=r.status_code)
        try:
            data = r.json()
        except ValueError:
            log.warning("Google Vision returned a non-JSON body")
            return ""
        return _first_annotation(data)


def _first_annotation(data: Any) -> str:
    """Full-text annotation of the first response, or '' if the shape is off."""
    try:
        text = data["responses"][0]["textAnnotations"][0]["description"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


def get_ocr_provider(config: dict) -> OCRProvider:
    """Resolve the OCR backend named by ``ocr.provider``; unknown names are fatal."""
    settings = config.get("ocr") or {}
    provider = str(settings.get("provider") or "tesseract").strip().lower()
    if provider == "tesseract":
        return TesseractOCR()
    if provider == "google":
        api_key = str(settings.get("api_key") or "").strip()
        if not api_key:
            raise ConfigurationError("OCR provider 'google' needs ocr.api_key")
        return GoogleVisionOCR(api_key)
    raise ConfigurationError(f"Unsupported OCR provider: {provider}")
