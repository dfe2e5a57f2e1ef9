"""
Rent generation: create the missing monthly rent records of a lease.

A lease owes one rent record per calendar month from the month of its start
date through min(today, end date). Generation only fills gaps; a record that
already exists for a (mois, annee) is never touched.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.periods import as_date, due_date, iter_months
from app.core.status import resolve_status
from app.models.bail import Contrat
from app.models.enums import StatutContrat, StatutLoyer
from app.models.loyer import Loyer
from app.services.history import (
    ChangementStatutLoyer,
    GenerationLoyersMetadata,
    RecalculStatutsMetadata,
    write_history,
)
from app.services.receipts import issue_receipt

logger = logging.getLogger("rent_generation")


@dataclass
class GenerationReport:
    contrats_traites: int = 0
    loyers_crees: list[Loyer] = field(default_factory=list)
    erreurs: list[dict] = field(default_factory=list)


def expected_periods(contrat: Contrat, now: date | datetime) -> list[tuple[int, int]]:
    """(mois, annee) pairs a lease should have rent records for at `now`."""
    if contrat.statut != StatutContrat.ACTIF:
        return []

    today = as_date(now)
    if contrat.date_debut > today:
        return []

    upper = min(today, contrat.date_fin) if contrat.date_fin else today
    return list(iter_months(contrat.date_debut, upper))


def generate_missing_rents(
    db: Session,
    contrat: Contrat,
    now: date | datetime | None = None,
) -> list[Loyer]:
    """Insert the missing rent records of one lease and commit. Returns the new rows."""
    now = now or datetime.now()
    periods = expected_periods(contrat, now)
    if not periods:
        return []

    existing = {
        (mois, annee)
        for mois, annee in db.query(Loyer.mois, Loyer.annee)
        .filter(Loyer.contrat_id == contrat.id)
        .all()
    }
    montant_du = contrat.montant_mensuel

    created: list[Loyer] = []
    try:
        for mois, annee in periods:
            if (mois, annee) in existing:
                continue
            loyer = Loyer(
                contrat_id=contrat.id,
                mois=mois,
                annee=annee,
                montant_du=montant_du,
                montant_paye=Decimal("0"),
                date_echeance=due_date(mois, annee, contrat.jour_paiement),
                statut=StatutLoyer.EN_ATTENTE,
                commentaires=f"Loyer généré automatiquement pour {mois}/{annee}",
            )
            db.add(loyer)
            created.append(loyer)

        if created:
            write_history(
                db,
                contrat.id,
                GenerationLoyersMetadata(
                    periodes=[f"{l.mois}/{l.annee}" for l in created],
                    nombre_loyers=len(created),
                    montant_total=float(montant_du * len(created)),
                ),
                f"Génération automatique de {len(created)} loyer(s)",
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erreur lors de la génération des loyers du contrat %s", contrat.id)
        raise

    if created:
        logger.info("%d loyers générés automatiquement pour le contrat %s", len(created), contrat.id)
    return created


def generate_all_missing_rents(db: Session, now: date | datetime | None = None) -> GenerationReport:
    """Run generation for every active lease. A failing lease does not stop the others."""
    now = now or datetime.now()
    report = GenerationReport()

    contrats = db.query(Contrat).filter(Contrat.statut == StatutContrat.ACTIF).all()
    for contrat in contrats:
        report.contrats_traites += 1
        try:
            report.loyers_crees.extend(generate_missing_rents(db, contrat, now))
        except SQLAlchemyError as exc:
            report.erreurs.append({"contratId": contrat.id, "erreur": str(exc)})

    logger.info(
        "Génération terminée: %d loyers créés sur %d contrats actifs",
        len(report.loyers_crees),
        report.contrats_traites,
    )
    return report


def recalculate_statuses(
    db: Session,
    now: date | datetime | None = None,
    contrat_id: int | None = None,
) -> list[dict]:
    """
    Re-resolve the status of every rent record against `now` and persist the
    ones that changed. Returns the transitions, one dict per changed record.
    """
    now = now or datetime.now()
    q = db.query(Loyer)
    if contrat_id:
        q = q.filter(Loyer.contrat_id == contrat_id)

    changes: dict[int, list[ChangementStatutLoyer]] = {}
    try:
        for loyer in q.order_by(Loyer.contrat_id, Loyer.annee, Loyer.mois).all():
            nouveau = resolve_status(loyer.montant_du, loyer.montant_paye, loyer.date_echeance, now)
            if nouveau == loyer.statut:
                continue
            ancien = loyer.statut
            loyer.statut = nouveau
            issue_receipt(db, loyer, ancien)
            changes.setdefault(loyer.contrat_id, []).append(
                ChangementStatutLoyer(loyer_id=loyer.id, ancien_statut=ancien, nouveau_statut=nouveau)
            )

        for cid, changements in changes.items():
            write_history(
                db,
                cid,
                RecalculStatutsMetadata(changements=changements),
                f"Recalcul des statuts: {len(changements)} loyer(s) mis à jour",
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    return [
        {"id": c.loyer_id, "ancienStatut": c.ancien_statut.value, "nouveauStatut": c.nouveau_statut.value}
        for changements in changes.values()
        for c in changements
    ]
