"""Read the base resume as plain text.

Supports TXT/Markdown, PDF (pdftotext when installed, else pypdf) and DOCX
(stdlib zipfile). Any failure degrades to a placeholder so the generation
steps can still run.
"""
from __future__ import annotations

import re
import shutil
import subprocess
import zipfile
from pathlib import Path
from xml.etree import ElementTree

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from autoapply.errors import ResourceUnavailable
from autoapply.log import get_logger

log = get_logger(__name__)

RESUME_PLACEHOLDER = "Resume content not available"
_TEXT_SUFFIXES = {".txt", ".md", ".text", ""}


def load_resume_text(path: str | Path | None) -> str:
    """Resume text from ``path``, or RESUME_PLACEHOLDER if it cannot be read."""
    try:
        text = read_resume(path)
    except ResourceUnavailable as exc:
        log.warning("Resume unavailable (%s), continuing with placeholder", exc)
        return RESUME_PLACEHOLDER
    return text


def read_resume(path: str | Path | None) -> str:
    if not path:
        raise ResourceUnavailable("no resume path configured")
    path = Path(path).expanduser()
    if not path.is_file():
        raise ResourceUnavailable(f"{path} does not exist")

    suffix = path.suffix.lower()
    try:
        if suffix in _TEXT_SUFFIXES:
            text = path.read_text(encoding="utf-8", errors="ignore")
        elif suffix == ".pdf":
            text = _extract_pdf(path)
        elif suffix == ".docx":
            text = _extract_docx(path)
        else:
            raise ResourceUnavailable(f"unsupported resume format: {suffix}")
    except (OSError, subprocess.SubprocessError, PdfReadError, zipfile.BadZipFile, KeyError, ElementTree.ParseError) as exc:
        raise ResourceUnavailable(f"cannot read {path.name}: {exc}") from exc

    if not text.strip():
        raise ResourceUnavailable(f"{path.name} contains no text")
    return text


# word boundaries that PDF text extraction tends to drop
_MERGED_BOUNDARIES = tuple(
    (re.compile(pattern), r"\1 \2")
    for pattern in (
        r"([a-z])([A-Z])",
        r"([a-zA-Z])(\d)",
        r"(\d)([a-zA-Z])",
        r"([.!?,;:])([A-Za-z])",
    )
)
_MIN_SPACE_RATIO = 0.08
_WORD_NS = {"w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main"}


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when a PDF page comes back with its words run together."""
    if len(text) < 50 or text.count(" ") / len(text) > _MIN_SPACE_RATIO:
        return text
    for pattern, repl in _MERGED_BOUNDARIES:
        text = pattern.sub(repl, text)
    return text


def _pdftotext(path: Path) -> str | None:
    """Layout-preserving text from poppler's pdftotext, or None if unavailable."""
    if shutil.which("pdftotext") is None:
        return None
    result = subprocess.run(
        ["pdftotext", "-layout", str(path), "-"],
        capture_output=True,
        text=True,
        timeout=30,
    )
    if result.returncode != 0 or not result.stdout.strip():
        log.debug("pdftotext gave nothing for %s (exit %d), trying pypdf", path.name, result.returncode)
        return None
    return result.stdout


def _extract_pdf(path: Path) -> str:
    text = _pdftotext(path)
    if text is not None:
        return text
    pages = PdfReader(str(path)).pages
    return "\n".join(_fix_spacing(page.extract_text() or "") for page in pages)


def _extract_docx(path: Path) -> str:
    with zipfile.ZipFile(path) as zf, zf.open("word/document.xml") as f:
        body = ElementTree.parse(f).getroot()
    paragraphs = (
        "".join(run.text or "" for run in para.iterfind(".//w:t", _WORD_NS))
        for para in body.iterfind(".//w:p", _WORD_NS)
    )
    return "\n".join(p for p in paragraphs if p)
