"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import Docx2txtLoader, PyPDFLoader, TextLoader

from athena_rag.errors import ExtractionError, ValidationError, wrap_error

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

_COMPONENT = "ingestion.loader"


class SourceType(str, enum.Enum):
    """Closed set of supported upload types."""

    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"

    @classmethod
    def parse(cls, value: str) -> SourceType:
        """Case-insensitive lookup; raises :class:`ValidationError` for unknown types."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unsupported source_type: {value!r}",
                context={"component": _COMPONENT, "supported": [t.value for t in cls]},
            ) from None


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file (one unit per page)."""
    return PyPDFLoader(str(path)).load()


def load_docx(path: str | Path) -> list[Document]:
    """Load a single Word document."""
    return Docx2txtLoader(str(path)).load()


def load_txt(path: str | Path) -> list[Document]:
    """Load a single UTF-8 plain-text file."""
    return TextLoader(str(path), encoding="utf-8").load()


def load_document(path: str | Path, source_type: SourceType | str) -> list[Document]:
    """Load *path* with the loader matching *source_type*.

    Parameters
    ----------
    path:
        Readable file on local disk.
    source_type:
        Declared type of the file; strings are parsed with
        :meth:`SourceType.parse`.

    Returns
    -------
    list[Document]
        Non-blank text units, each tagged with ``source`` and ``type``
        metadata.

    Raises
    ------
    ValidationError
        The file is missing or the type is unsupported.
    ExtractionError
        The file could not be parsed or contained no text.
    """
    if not isinstance(source_type, SourceType):
        source_type = SourceType.parse(source_type)

    path = Path(path)
    if not path.is_file():
        raise ValidationError(
            f"Document file not found at path: {path}",
            context={"component": _COMPONENT},
        )

    try:
        if source_type is SourceType.PDF:
            units = load_pdf(path)
        elif source_type is SourceType.DOCX:
            units = load_docx(path)
        elif source_type is SourceType.TXT:
            units = load_txt(path)
        else:  # pragma: no cover - enum is closed
            raise ValidationError(f"Unsupported source_type: {source_type!r}", context={"component": _COMPONENT})
    except Exception as exc:
        raise wrap_error(
            exc, ExtractionError, f"Error loading {source_type.value} document", component=_COMPONENT
        ) from exc

    units = [u for u in units if u.page_content and u.page_content.strip()]
    if not units:
        raise ExtractionError(
            f"No text extracted from {source_type.value.upper()}: {path.name}",
            context={"component": _COMPONENT},
        )

    for unit in units:
        unit.metadata["source"] = str(path)
        unit.metadata["type"] = source_type.value

    logger.info("Loaded %d text unit(s) from %s (%s)", len(units), path.name, source_type.value)
    return units
