"""
CAF payment import: the bookkeeping sheet with one row per rent and up to
three amount columns (housing allowance paid by the CAF, tenant share, other).

Usage: python -m app.importers.caf paiements_caf.xlsx

Each positive amount becomes its own payment on the same rent record. A row
without a date is dated on the first day of its (mois, annee).
"""
import sys
from datetime import date

from app.core.entries import ImportCandidate, PaymentEntry
from app.core.errors import RowValidationError
from app.core.parsing import (
    clean_text,
    is_blank,
    normalize_city,
    normalize_mode,
    parse_amount,
    parse_date,
    validate_period,
)
from app.db.database import SessionLocal
from app.importers.runner import BaseImporter, run_cli
from app.importers.spreadsheet import SheetRow
from app.models.enums import ModePaiement
from app.services.rent_resolver import AddressStrategy, RentResolver
from app.utils.constants_loader import (
    get_importer_constants,
    get_mode_aliases,
    get_place_name_corrections,
)


class CafImporter(BaseImporter):
    variant = "caf"

    def __init__(self, db, now=None):
        super().__init__(db, now)
        constants = get_importer_constants(self.variant)
        self.columns: dict[str, str] = constants["columns"]
        self.amount_columns: list[dict] = constants["amount_columns"]
        self.fallback_mode = ModePaiement(constants.get("fallback_mode", "VIREMENT"))
        self.mode_matching = constants.get("mode_matching", "contains")
        self.min_part_length = constants.get("min_address_part_length", 4)
        self.mode_aliases = get_mode_aliases()
        self.corrections = get_place_name_corrections()

    def _value(self, row: SheetRow, field: str):
        return row.values.get(self.columns[field])

    def _full_address(self, row: SheetRow) -> str | None:
        parts = (clean_text(self._value(row, f)) for f in ("adresse1", "adresse2", "code_postal", "ville"))
        return " ".join(p for p in parts if p) or None

    def not_found_message(self, candidate: ImportCandidate) -> str:
        return f"Loyer non trouvé pour {candidate.label}"

    def parse_row(self, row: SheetRow) -> ImportCandidate:
        n = row.number
        raw_mois = self._value(row, "mois")
        raw_annee = self._value(row, "annee")
        raw_date = self._value(row, "date")

        try:
            mois, annee = validate_period(raw_mois, raw_annee, self.year_min, self.year_max)
        except ValueError as exc:
            raise RowValidationError(n, str(exc))

        if is_blank(raw_date):
            date_paiement = date(annee, mois, 1)
        else:
            try:
                date_paiement = parse_date(raw_date)
            except ValueError:
                raise RowValidationError(n, f"Date invalide ({raw_date})")

        mode = normalize_mode(
            self._value(row, "mode"), self.mode_aliases, self.fallback_mode, self.mode_matching
        )

        entries = []
        for colonne in self.amount_columns:
            raw = row.values.get(colonne["column"])
            if is_blank(raw):
                continue
            try:
                montant = parse_amount(raw)
            except ValueError:
                raise RowValidationError(n, f"Montant invalide ({colonne['column']}: {raw})")
            if montant <= 0:
                continue
            entries.append(
                PaymentEntry(
                    montant=montant,
                    date=date_paiement,
                    mode=mode,
                    payeur=colonne["payeur"],
                    commentaire=f"Import Excel - {colonne['type']}",
                )
            )
        if not entries:
            raise RowValidationError(n, "Aucun montant positif trouvé")

        return ImportCandidate(
            row_number=n,
            mois=mois,
            annee=annee,
            entries=entries,
            adresse=clean_text(self._value(row, "adresse1")),
            ville=normalize_city(self._value(row, "ville"), self.corrections) or None,
            libelle=self._full_address(row),
        )

    def build_resolver(self) -> RentResolver:
        return RentResolver(
            [AddressStrategy(match_city=True, split_parts=True, min_part_length=self.min_part_length)]
        )


def main(argv: list[str] | None = None, session_factory=SessionLocal) -> int:
    return run_cli(
        CafImporter,
        argv,
        session_factory,
        "Importe les paiements CAF / locataire depuis le tableau de suivi Excel.",
    )


if __name__ == "__main__":
    sys.exit(main())
