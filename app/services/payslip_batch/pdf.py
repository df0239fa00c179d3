"""PDF sanity check for uploaded payslips."""

import io
import logging

from pypdf import PdfReader

logger = logging.getLogger(__name__)


def is_readable_pdf(content: bytes) -> bool:
    """True when pypdf can open the document and it has at least one page."""
    if not content:
        return False
    try:
        reader = PdfReader(io.BytesIO(content))
        return len(reader.pages) > 0
    except Exception as exc:  # noqa: BLE001
        logger.debug("Rejected payslip content: %s", exc)
        return False
