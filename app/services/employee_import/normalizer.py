"""
Row normalizer for the bulk employee import.

Turns one loosely typed spreadsheet row into a CandidateRecord, or rejects it
with a RowError. Optional fields that cannot be parsed degrade to None.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from openpyxl.utils.datetime import from_excel

from app.schemas.employee_import import CandidateRecord, ImportErrorCode, RowError

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

# Set by the spreadsheet reader to the row's position in the sheet
ROW_NUMBER_KEY = "_row_no"

# Header labels accepted for each field, compared case-insensitively
COLUMN_ALIASES = {
    "name": ("Nome Completo", "Nome"),
    "email": ("Email", "E-mail"),
    "short_id": ("Matrícula", "Matricula"),
    "birth_date": ("Data de Nascimento",),
    "phone": ("Telefone de Emergencia", "Telefone de Emergência", "Telefone"),
}

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")

MISSING_FIELD_REASON = "Nome Completo e Email são obrigatórios."
INVALID_EMAIL_REASON = "Formato de email inválido."

NormalizedRow = Union[CandidateRecord, RowError]


def _clean_text(value: Any) -> Optional[str]:
    """Cell value as trimmed text; empty cells become None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def _parse_birth_date(value: Any) -> Optional[date]:
    """
    Accept date objects, Excel serials, 'YYYY-MM-DD', 'DD/MM/YYYY' or
    'DD-MM-YYYY'. Returns None when the value is absent or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return None
        return converted.date() if isinstance(converted, datetime) else None
    raw = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        return None


def _field(row: Dict[str, Any], field: str) -> Any:
    for label in COLUMN_ALIASES[field]:
        key = label.casefold()
        if key in row:
            return row[key]
    return None


def json_safe_row(raw_row: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of a raw row that can be serialized in an API response."""
    safe: Dict[str, Any] = {}
    for key, value in raw_row.items():
        if key == ROW_NUMBER_KEY:
            continue
        if value is None or isinstance(value, (str, int, float, bool)):
            safe[str(key)] = value
        elif isinstance(value, (datetime, date)):
            safe[str(key)] = value.isoformat()
        else:
            safe[str(key)] = str(value)
    return safe


def normalize_row(raw_row: Mapping[str, Any], row_number: int, short_id_length: int) -> NormalizedRow:
    """Normalize one raw row. Never raises for bad data."""
    row = {str(k).strip().casefold(): v for k, v in raw_row.items() if k is not None}

    def reject(code: ImportErrorCode, reason: str) -> RowError:
        return RowError(row_number=row_number, code=code, reason=reason, data=json_safe_row(raw_row))

    name = _clean_text(_field(row, "name"))
    email = _clean_text(_field(row, "email"))
    if not name or not email:
        return reject(ImportErrorCode.MISSING_FIELD, MISSING_FIELD_REASON)

    if not EMAIL_PATTERN.match(email):
        return reject(ImportErrorCode.INVALID_EMAIL_FORMAT, INVALID_EMAIL_REASON)

    short_id = None
    short_id_text = _clean_text(_field(row, "short_id"))
    if short_id_text is not None:
        digits = re.sub(r"\D", "", short_id_text)
        if len(digits) != short_id_length:
            return reject(
                ImportErrorCode.INVALID_SHORT_ID,
                f"Matrícula deve conter {short_id_length} dígitos.",
            )
        short_id = digits

    return CandidateRecord(
        row_number=row_number,
        name=name,
        email=email,
        short_id=short_id,
        birth_date=_parse_birth_date(_field(row, "birth_date")),
        phone=_clean_text(_field(row, "phone")),
    )


def normalize_rows(raw_rows: Iterable[Mapping[str, Any]], short_id_length: int) -> List[NormalizedRow]:
    """
    Normalize rows in file order.

    Rows carry their sheet position under ROW_NUMBER_KEY when they come from
    the spreadsheet reader; otherwise data rows are numbered from 2 (row 1 is
    the header).
    """
    normalized = []
    for index, raw_row in enumerate(raw_rows):
        row_number = raw_row.get(ROW_NUMBER_KEY) or index + 2
        normalized.append(normalize_row(raw_row, int(row_number), short_id_length))
    return normalized
