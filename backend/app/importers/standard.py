"""
Standard payment import: one payment per row, flexible column names.

Usage: python -m app.importers.standard paiements.xlsx

Required columns: date, montant, payeur, mois, annee. The rent record is found
by contract id, then property address, then tenant name (see the column
aliases in gestion_locative.yaml).
"""
import sys

from app.core.entries import ImportCandidate, PaymentEntry
from app.core.errors import RowValidationError
from app.core.parsing import (
    clean_text,
    is_blank,
    normalize_mode,
    parse_amount,
    parse_date,
    pick,
    validate_period,
)
from app.db.database import SessionLocal
from app.importers.runner import BaseImporter, run_cli
from app.importers.spreadsheet import SheetRow
from app.models.enums import ModePaiement
from app.services.rent_resolver import (
    AddressStrategy,
    ContratIdStrategy,
    RentResolver,
    TenantNameStrategy,
)
from app.utils.constants_loader import get_importer_constants, get_mode_aliases


class StandardImporter(BaseImporter):
    variant = "standard"

    def __init__(self, db, now=None):
        super().__init__(db, now)
        constants = get_importer_constants(self.variant)
        self.columns: dict[str, list[str]] = constants["columns"]
        self.fallback_mode = ModePaiement(constants.get("fallback_mode", "AUTRE"))
        self.mode_matching = constants.get("mode_matching", "exact")
        self.mode_aliases = get_mode_aliases()

    def _value(self, row: SheetRow, field: str):
        return pick(row.values, self.columns.get(field, [field]))

    def parse_row(self, row: SheetRow) -> ImportCandidate:
        n = row.number
        raw_date = self._value(row, "date")
        raw_montant = self._value(row, "montant")
        payeur = clean_text(self._value(row, "payeur"))
        raw_mois = self._value(row, "mois")
        raw_annee = self._value(row, "annee")

        if is_blank(raw_date):
            raise RowValidationError(n, "Date manquante")
        if is_blank(raw_montant):
            raise RowValidationError(n, "Montant invalide ou manquant")
        try:
            montant = parse_amount(raw_montant)
        except ValueError:
            raise RowValidationError(n, "Montant invalide ou manquant")
        if not payeur:
            raise RowValidationError(n, "Payeur manquant")
        if is_blank(raw_mois) or is_blank(raw_annee):
            raise RowValidationError(n, "Mois et année requis")

        try:
            date_paiement = parse_date(raw_date)
        except ValueError:
            raise RowValidationError(n, "Format de date invalide")
        if montant <= 0:
            raise RowValidationError(n, "Le montant doit être positif")
        try:
            mois, annee = validate_period(raw_mois, raw_annee, self.year_min, self.year_max)
        except ValueError as exc:
            raise RowValidationError(n, str(exc))

        mode = normalize_mode(
            self._value(row, "mode"), self.mode_aliases, self.fallback_mode, self.mode_matching
        )
        entry = PaymentEntry(
            montant=montant,
            date=date_paiement,
            mode=mode,
            payeur=payeur,
            reference=clean_text(self._value(row, "reference")),
            commentaire=clean_text(self._value(row, "commentaire")),
        )
        return ImportCandidate(
            row_number=n,
            mois=mois,
            annee=annee,
            entries=[entry],
            contrat_id=clean_text(self._value(row, "contrat_id")),
            adresse=clean_text(self._value(row, "adresse_bien")),
            nom_locataire=clean_text(self._value(row, "nom_locataire")),
        )

    def build_resolver(self) -> RentResolver:
        return RentResolver([ContratIdStrategy(), AddressStrategy(), TenantNameStrategy()])


def main(argv: list[str] | None = None, session_factory=SessionLocal) -> int:
    return run_cli(
        StandardImporter,
        argv,
        session_factory,
        "Importe des paiements de loyers depuis un fichier Excel.",
    )


if __name__ == "__main__":
    sys.exit(main())
