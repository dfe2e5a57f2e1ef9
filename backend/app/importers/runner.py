"""
Shared import pipeline for payment spreadsheets.

    read rows → parse/validate each row → resolve its rent record
              → group by lease, then by rent record → record each lease batch

Row-level problems (validation, resolution miss) are collected and never stop
the run. A run with no usable row at all is fatal. A persistence failure
aborts only the lease group it happened in.
"""
import argparse
import logging
import sys
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.entries import ImportCandidate, PaymentEntry
from app.core.errors import ImportFatalError, RowValidationError
from app.db.database import init_db
from app.importers.spreadsheet import SheetRow, read_rows
from app.models.enums import HistoriqueAction
from app.services.payment_recorder import record_lease_batch
from app.services.rent_resolver import RentResolver
from app.utils.constants_loader import get_validation_constants

logger = logging.getLogger("import")


@dataclass
class ImportReport:
    lignes_lues: int = 0
    paiements_crees: int = 0
    loyers_mis_a_jour: int = 0
    quittances_generees: int = 0
    erreurs: list[str] = field(default_factory=list)
    groupes_en_echec: list[int] = field(default_factory=list)


class BaseImporter(ABC):
    variant: str = ""

    def __init__(self, db: Session, now: date | datetime | None = None):
        self.db = db
        self.now = now
        validation = get_validation_constants()
        self.year_min = validation.get("year_min", 2000)
        self.year_max = validation.get("year_max", 2030)

    @abstractmethod
    def parse_row(self, row: SheetRow) -> ImportCandidate:
        """Validate one sheet row. Raises RowValidationError."""

    @abstractmethod
    def build_resolver(self) -> RentResolver: ...

    def not_found_message(self, candidate: ImportCandidate) -> str:
        return "Loyer non trouvé"

    def run(self, path: str | Path) -> ImportReport:
        rows = read_rows(path)
        report = ImportReport(lignes_lues=len(rows))
        resolver = self.build_resolver()

        # contrat id → loyer id → entries, in sheet order
        groups: dict[int, dict[int, list[PaymentEntry]]] = defaultdict(lambda: defaultdict(list))
        for row in rows:
            try:
                candidate = self.parse_row(row)
                loyer = resolver.resolve(self.db, candidate)
                if loyer is None:
                    raise RowValidationError(row.number, self.not_found_message(candidate))
            except RowValidationError as exc:
                report.erreurs.append(str(exc))
                continue
            groups[loyer.contrat_id][loyer.id].extend(candidate.entries)

        if not groups:
            raise ImportFatalError(
                "Aucune ligne valide trouvée. Veuillez corriger les erreurs.", report.erreurs
            )

        if report.erreurs:
            logger.warning(
                "%d ligne(s) ignorée(s), %d paiement(s) seront importés",
                len(report.erreurs),
                sum(len(e) for g in groups.values() for e in g.values()),
            )

        for contrat_id, batches in groups.items():
            try:
                outcome = record_lease_batch(
                    self.db,
                    contrat_id,
                    dict(batches),
                    action=HistoriqueAction.IMPORT_PAIEMENTS_EXCEL,
                    now=self.now,
                )
            except SQLAlchemyError:
                report.groupes_en_echec.append(contrat_id)
                continue
            report.paiements_crees += outcome.paiements_crees
            report.loyers_mis_a_jour += len(outcome.loyers)
            report.quittances_generees += outcome.quittances_generees

        logger.info(
            "Import %s terminé: %d paiement(s), %d loyer(s), %d quittance(s)",
            self.variant,
            report.paiements_crees,
            report.loyers_mis_a_jour,
            report.quittances_generees,
        )
        return report


def print_report(report: ImportReport) -> None:
    """Row errors first, then the success summary."""
    if report.erreurs:
        print("Erreurs trouvées:")
        for erreur in report.erreurs:
            print(f"   - {erreur}")
    print("Import terminé avec succès!")
    print(f"   - {report.lignes_lues} ligne(s) lue(s)")
    print(f"   - {report.paiements_crees} paiement(s) créé(s)")
    print(f"   - {report.loyers_mis_a_jour} loyer(s) mis à jour")
    if report.quittances_generees:
        print(f"   - {report.quittances_generees} quittance(s) générée(s) automatiquement")
    if report.groupes_en_echec:
        ids = ", ".join(str(i) for i in report.groupes_en_echec)
        print(f"   - contrat(s) en échec (annulés): {ids}")


def run_cli(importer_cls: type[BaseImporter], argv: list[str] | None, session_factory, description: str) -> int:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("fichier", help="Chemin du fichier Excel (.xlsx)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    db = session_factory()
    init_db(db.get_bind())
    try:
        report = importer_cls(db).run(args.fichier)
    except ImportFatalError as exc:
        for erreur in exc.erreurs:
            print(f"   - {erreur}")
        print(f"Erreur lors de l'import: {exc.message}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print_report(report)
    return 0
