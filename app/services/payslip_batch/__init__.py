"""
Batch payslip upload: filename matching, classification and storage.
"""

from app.services.payslip_batch.classifier import (
    PayslipFile,
    PayslipOwner,
    classify_payslip_files,
    owner_identifiers,
)
from app.services.payslip_batch.filename import FilenameMatch, match_filename
from app.services.payslip_batch.pdf import is_readable_pdf
from app.services.payslip_batch.storage import PayslipStorage

__all__ = [
    "PayslipFile",
    "PayslipOwner",
    "classify_payslip_files",
    "owner_identifiers",
    "FilenameMatch",
    "match_filename",
    "is_readable_pdf",
    "PayslipStorage",
]
