"""
Binary document handling: content sniffing, zip unpacking, PDF text.

NSE circulars arrive as zips holding the circular PDF (``CMLxxxxx.pdf``)
next to a shareholding-pattern PDF (``SHP_*.pdf``) that must never be
parsed. BSE annexures arrive as bare PDFs.
"""

import io
import zipfile

import pdfplumber

from ..errors import ArchiveError, ExtractionFailure
from ..logging import get_logger
from ..models.circular import ContentType, ExtractedText, RetrievedDocument

logger = get_logger(__name__)


def choose_pdf_entry(names: list[str]) -> str | None:
    """
    Pick the circular PDF from zip member names.

    Prefers ``cml*.pdf``; otherwise any PDF not prefixed ``shp``.
    """
    for name in names:
        base = name.rsplit('/', 1)[-1].lower()
        if base.startswith('cml') and base.endswith('.pdf'):
            return name
    for name in names:
        base = name.rsplit('/', 1)[-1].lower()
        if base.endswith('.pdf') and not base.startswith('shp'):
            return name
    return None


def select_pdf_from_zip(content: bytes) -> bytes:
    """Return the bytes of the circular PDF inside a zip."""
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            names = [info.filename for info in archive.infolist() if not info.is_dir()]
            logger.debug('documents.zip_entries', entries=names)
            chosen = choose_pdf_entry(names)
            if chosen is None:
                raise ArchiveError('No usable PDF in zip', context={'entries': names})
            logger.info('documents.zip_selected', entry=chosen)
            return archive.read(chosen)
    except zipfile.BadZipFile as e:
        raise ArchiveError('Unreadable zip payload', context={'size': len(content)}) from e


def extract_text(pdf_bytes: bytes) -> ExtractedText:
    """
    Extract plain text from PDF bytes with pdfplumber, page by page.

    Raises:
        ExtractionFailure: the PDF cannot be opened or contains no text
    """
    parts: list[str] = []
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                page_text = page.extract_text() or ''
                if page_text.strip():
                    parts.append(page_text)
    except Exception as e:
        # pdfminer raises a zoo of parser exceptions on malformed input
        raise ExtractionFailure(
            'PDF could not be read',
            context={'size': len(pdf_bytes), 'error_type': type(e).__name__},
        ) from e

    text = '\n'.join(parts)
    if not text.strip():
        raise ExtractionFailure('PDF contains no extractable text', context={'pages': page_count})

    logger.debug('documents.text_extracted', pages=page_count, chars=len(text))
    return ExtractedText(text=text, page_count=page_count)


def document_text(document: RetrievedDocument) -> ExtractedText:
    """Text of a PDF or of the circular PDF inside a zip."""
    if document.content_type is ContentType.ZIP:
        return extract_text(select_pdf_from_zip(document.content))
    return extract_text(document.content)
