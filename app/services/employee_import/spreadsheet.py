"""
Spreadsheet reader for employee import uploads.

Reads the first sheet of an .xlsx workbook, or a .csv file, into a list of
row dicts keyed by header label. Completely empty rows are dropped; every
row keeps its sheet position under ROW_NUMBER_KEY.
"""

import csv
import io
from typing import Any, Dict, List

from openpyxl import load_workbook

from app.services.employee_import.normalizer import ROW_NUMBER_KEY

TEMPLATE_HEADERS = ["Nome Completo", "Email", "Matrícula", "Data de Nascimento", "Telefone de Emergencia"]
TEMPLATE_EXAMPLE = ["Exemplo Nome", "exemplo@email.com", "001001", "1990-12-31", "11999998888"]

SUPPORTED_EXTENSIONS = (".csv", ".xlsx")


class SpreadsheetError(Exception):
    """The uploaded file could not be read as a spreadsheet."""


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _rows_from_matrix(header: List[Any], body) -> List[Dict[str, Any]]:
    headers = [str(h).strip() if h is not None else "" for h in header]
    rows = []
    for row_no, values in enumerate(body, start=2):  # data starts at row 2
        if all(_is_blank(v) for v in values):
            continue
        row: Dict[str, Any] = {ROW_NUMBER_KEY: row_no}
        for col, value in enumerate(values):
            if col < len(headers) and headers[col]:
                row[headers[col]] = value
        rows.append(row)
    return rows


def read_xlsx(content: bytes) -> List[Dict[str, Any]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:  # openpyxl raises a mix of zipfile/KeyError/ValueError
        raise SpreadsheetError(f"Could not open workbook: {exc}") from exc
    try:
        sheet = workbook.worksheets[0]
        rows_iter = sheet.iter_rows(values_only=True)
        try:
            header = next(rows_iter)
        except StopIteration:
            return []
        return _rows_from_matrix(list(header), (list(r) for r in rows_iter))
    finally:
        workbook.close()


def read_csv(content: bytes) -> List[Dict[str, Any]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")
    try:
        dialect = csv.Sniffer().sniff(text[:4096], delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel
    try:
        matrix = list(csv.reader(io.StringIO(text), dialect))
    except csv.Error as exc:
        raise SpreadsheetError(f"Malformed CSV: {exc}") from exc
    if not matrix:
        return []
    return _rows_from_matrix(matrix[0], matrix[1:])


def read_rows(filename: str, content: bytes) -> List[Dict[str, Any]]:
    """Dispatch on the file extension."""
    name = (filename or "").lower()
    if name.endswith(".xlsx"):
        return read_xlsx(content)
    if name.endswith(".csv"):
        return read_csv(content)
    raise SpreadsheetError(f"Unsupported file type: {filename}")


def template_csv() -> str:
    """CSV template with the expected headers and one example row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(TEMPLATE_HEADERS)
    writer.writerow(TEMPLATE_EXAMPLE)
    return buffer.getvalue()
