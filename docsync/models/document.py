"""Document identity and content models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DOCUMENTS_ROOT = "rfd"
NUMBER_WIDTH = 4


class DocumentNumber(BaseModel):
    """Numeric identifier of a document.

    Each document lives in its own directory, ``/<root>/<zero-padded number>``.
    """

    model_config = ConfigDict(frozen=True)

    value: int

    @classmethod
    def of(cls, value: int) -> "DocumentNumber":
        return cls(value=value)

    def as_number_string(self) -> str:
        """Zero-padded form, e.g. ``0042``."""
        return f"{self.value:0{NUMBER_WIDTH}d}"

    def repo_directory(self, root: str = DOCUMENTS_ROOT) -> str:
        """Directory holding this document, e.g. ``/rfd/0042``."""
        return f"/{root.strip('/')}/{self.as_number_string()}"

    def __str__(self) -> str:
        return self.as_number_string()


class DocumentFormat(str, Enum):
    """Markup dialect of a document README."""

    ASCIIDOC = "asciidoc"
    MARKDOWN = "markdown"

    @property
    def readme_name(self) -> str:
        if self is DocumentFormat.ASCIIDOC:
            return "README.adoc"
        return "README.md"


class DocumentContent(BaseModel):
    """README text tagged with the dialect of the file it was read from."""

    model_config = ConfigDict(frozen=True)

    format: DocumentFormat
    text: str

    @classmethod
    def asciidoc(cls, text: str) -> "DocumentContent":
        return cls(format=DocumentFormat.ASCIIDOC, text=text)

    @classmethod
    def markdown(cls, text: str) -> "DocumentContent":
        return cls(format=DocumentFormat.MARKDOWN, text=text)

    @property
    def is_asciidoc(self) -> bool:
        return self.format is DocumentFormat.ASCIIDOC

    @property
    def is_markdown(self) -> bool:
        return self.format is DocumentFormat.MARKDOWN


class PdfArtifact(BaseModel):
    """A rendered PDF ready to be stored."""

    filename: str = Field(..., description="File name, without directory")
    contents: bytes
