"""MIME type based registry for document openers.

PDF and common raster image types are registered with the PyMuPDF backend.
The registry dispatches on the MIME type passed by the caller and performs no
content sniffing.

``UnsupportedFormatError`` is raised when opening a buffer whose MIME type has
no registered opener.
"""

from __future__ import annotations

import mimetypes
import os
from pathlib import Path
from typing import Callable

from ..utils.errors import UnsupportedFormatError
from .base import Document
from .pymupdf_reader import IMAGE_FILETYPES, PDF_MIME, open_with_pymupdf

OpenerFunc = Callable[[bytes, str], Document]

_OPENERS: dict[str, OpenerFunc] = {}


def _normalize(mime_type: str) -> str:
    return mime_type.split(";", 1)[0].strip().lower()


def register_opener(mime_type: str, func: OpenerFunc) -> None:
    """Register ``func`` to open buffers of ``mime_type``.

    Parameters
    ----------
    mime_type:
        MIME type such as ``"application/pdf"``.  Matching is case-insensitive
        and ignores parameters after ``;``.
    func:
        Callable taking ``(buffer, mime_type)`` and returning a
        :class:`~docshield.io.base.Document`.
    """

    _OPENERS[_normalize(mime_type)] = func


def is_supported(mime_type: str) -> bool:
    """Return ``True`` if an opener is registered for ``mime_type``."""

    return _normalize(mime_type) in _OPENERS


def supported_types() -> list[str]:
    return sorted(_OPENERS)


def guess_mime_type(path: str | os.PathLike[str]) -> str:
    """Guess a MIME type from the file extension of ``path``.

    Returns ``"application/octet-stream"`` when the extension is unknown.
    """

    guessed, _ = mimetypes.guess_type(Path(path).name)
    return guessed or "application/octet-stream"


def open_document(buffer: bytes, mime_type: str) -> Document:
    """Open ``buffer`` using the opener registered for ``mime_type``.

    Raises
    ------
    UnsupportedFormatError
        If no opener is registered for the MIME type.
    EncryptedDocumentError
        If the document requires a password.
    DocumentOpenError
        If the buffer cannot be parsed.
    """

    key = _normalize(mime_type)
    opener = _OPENERS.get(key)
    if opener is None:
        raise UnsupportedFormatError(f"Unsupported file type: '{mime_type}'") from None
    return opener(buffer, key)


register_opener(PDF_MIME, open_with_pymupdf)
for _mime in IMAGE_FILETYPES:
    register_opener(_mime, open_with_pymupdf)

__all__ = [
    "OpenerFunc",
    "register_opener",
    "is_supported",
    "supported_types",
    "guess_mime_type",
    "open_document",
]
