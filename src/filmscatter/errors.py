"""Typed exceptions raised at the package boundaries."""

from __future__ import annotations

from typing import Optional


class FilmScatterError(Exception):
    """Base filmscatter error."""


class DecodeError(FilmScatterError):
    """An image source could not be decoded into a sample grid."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class ManifestError(FilmScatterError):
    """An experiment manifest is missing columns or has unusable rows."""


class RunStoreError(FilmScatterError):
    """A saved-run file cannot be read, or a run id is already stored."""
