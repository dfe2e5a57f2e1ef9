"""
Read the first worksheet of an .xlsx file into dict rows keyed by header.
"""
import logging
from dataclasses import dataclass
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.core.errors import ImportFatalError
from app.core.parsing import is_blank

logger = logging.getLogger("spreadsheet")


@dataclass
class SheetRow:
    number: int  # sheet row number, header is row 1
    values: dict


def read_rows(path: str | Path) -> list[SheetRow]:
    path = Path(path)
    if not path.exists():
        raise ImportFatalError(f"Fichier non trouvé: {path}")

    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, OSError, KeyError, ValueError) as exc:
        raise ImportFatalError(f"Impossible de lire le fichier Excel {path}: {exc}") from exc

    try:
        ws = wb.worksheets[0]
        iterator = ws.iter_rows(values_only=True)
        header = next(iterator, None)
        headers = [str(h).strip() if h is not None else None for h in header or ()]

        rows: list[SheetRow] = []
        for number, values in enumerate(iterator, start=2):
            if all(is_blank(v) for v in values):
                continue
            row = {h: v for h, v in zip(headers, values) if h}
            rows.append(SheetRow(number=number, values=row))
    finally:
        wb.close()

    if not rows:
        raise ImportFatalError("Le fichier Excel est vide ou mal formaté")

    logger.info("%d lignes trouvées dans %s", len(rows), path.name)
    return rows
