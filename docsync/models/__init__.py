"""Pydantic models for synced documents."""

from .document import DocumentContent, DocumentFormat, DocumentNumber, PdfArtifact

__all__ = [
    "DocumentContent",
    "DocumentFormat",
    "DocumentNumber",
    "PdfArtifact",
]
