"""
Payslip file storage on the local filesystem.

Each upload batch writes under its own file names, so a stored payslip keeps
pointing at its previous file until the database row is switched over.
"""

from pathlib import Path

URL_PREFIX = "/payslips/"


class PayslipStorage:
    """Writes payslip PDFs under a root directory, grouped by year."""

    def __init__(self, root: str):
        self.root = Path(root)

    def relative_path(self, identifier: str, month: int, year: int, tag: str) -> str:
        return f"{year:04d}/{identifier}-{month:02d}-{year:04d}-{tag}.pdf"

    def save(self, identifier: str, month: int, year: int, content: bytes, tag: str) -> str:
        """Write the file and return its stored path."""
        relative = self.relative_path(identifier, month, year, tag)
        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return f"{URL_PREFIX}{relative}"

    def delete(self, file_url: str) -> None:
        if not file_url.startswith(URL_PREFIX):
            raise ValueError(f"Not a stored payslip: {file_url}")
        (self.root / file_url[len(URL_PREFIX):]).unlink(missing_ok=True)
