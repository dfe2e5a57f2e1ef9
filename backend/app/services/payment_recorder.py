"""
Payment recording: append payments to rent records and reconcile them.

For every rent record of a batch: insert the Paiement rows, add their amounts
to montant_paye, resolve the new status and issue the receipt on a transition
into PAYE. Everything touching one lease (payments, rent updates, receipts and
the single history row) is committed together; a failure rolls back that lease
only.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.entries import PaymentEntry
from app.core.periods import period_label
from app.core.status import resolve_status
from app.models.enums import HistoriqueAction, StatutLoyer
from app.models.loyer import Loyer, Paiement
from app.services.history import (
    ImportPaiementsMetadata,
    MouvementLoyer,
    PaiementEnregistreMetadata,
    write_history,
)
from app.services.receipts import issue_receipt

logger = logging.getLogger("payment_recorder")

_METADATA_BY_ACTION = {
    HistoriqueAction.IMPORT_PAIEMENTS_EXCEL: (ImportPaiementsMetadata, "Import Excel"),
    HistoriqueAction.PAIEMENT_ENREGISTRE: (PaiementEnregistreMetadata, "Paiement enregistré"),
}


@dataclass
class LoyerOutcome:
    loyer_id: int
    mois: int
    annee: int
    nombre_paiements: int
    montant_total: Decimal
    montant_paye: Decimal
    ancien_statut: StatutLoyer
    nouveau_statut: StatutLoyer
    quittance_id: int | None = None


@dataclass
class BatchOutcome:
    contrat_id: int
    loyers: list[LoyerOutcome] = field(default_factory=list)
    skipped_loyer_ids: list[int] = field(default_factory=list)

    @property
    def paiements_crees(self) -> int:
        return sum(o.nombre_paiements for o in self.loyers)

    @property
    def montant_total(self) -> Decimal:
        return sum((o.montant_total for o in self.loyers), Decimal("0"))

    @property
    def quittances_generees(self) -> int:
        return sum(1 for o in self.loyers if o.quittance_id is not None)


def apply_payments(
    db: Session,
    loyer: Loyer,
    entries: list[PaymentEntry],
    now: date | datetime,
) -> LoyerOutcome:
    """Append entries to one rent record inside the current transaction."""
    if not entries:
        raise ValueError("Au moins un paiement est requis.")

    ancien_statut = loyer.statut
    montant_paye = Decimal(str(loyer.montant_paye or 0))
    total = Decimal("0")

    for entry in entries:
        db.add(
            Paiement(
                loyer_id=loyer.id,
                montant=entry.montant,
                date=entry.date,
                mode=entry.mode,
                payeur=entry.payeur,
                reference=entry.reference,
                commentaire=entry.commentaire,
            )
        )
        montant_paye += Decimal(str(entry.montant))
        total += Decimal(str(entry.montant))

    loyer.montant_paye = montant_paye
    loyer.statut = resolve_status(loyer.montant_du, montant_paye, loyer.date_echeance, now)
    db.flush()

    logger.info(
        "Loyer %s: +%s€ (%d paiement(s)), statut %s → %s (%s€/%s€)",
        loyer.id,
        total,
        len(entries),
        ancien_statut.value,
        loyer.statut.value,
        montant_paye,
        loyer.montant_du,
    )

    quittance = issue_receipt(db, loyer, ancien_statut)
    return LoyerOutcome(
        loyer_id=loyer.id,
        mois=loyer.mois,
        annee=loyer.annee,
        nombre_paiements=len(entries),
        montant_total=total,
        montant_paye=montant_paye,
        ancien_statut=ancien_statut,
        nouveau_statut=loyer.statut,
        quittance_id=quittance.id if quittance else None,
    )


def record_lease_batch(
    db: Session,
    contrat_id: int,
    batches: dict[int, list[PaymentEntry]],
    action: HistoriqueAction = HistoriqueAction.IMPORT_PAIEMENTS_EXCEL,
    now: date | datetime | None = None,
) -> BatchOutcome:
    """
    Record payments for several rent records of the same lease in one
    transaction. `batches` maps loyer id → entries. Rent records that no
    longer exist (or belong to another lease) are skipped with a warning.
    """
    if any(not entries for entries in batches.values()):
        raise ValueError("Au moins un paiement est requis.")
    now = now or datetime.now()
    metadata_cls, label = _METADATA_BY_ACTION[action]
    outcome = BatchOutcome(contrat_id=contrat_id)

    try:
        for loyer_id, entries in batches.items():
            loyer = db.get(Loyer, loyer_id)
            if loyer is None or loyer.contrat_id != contrat_id:
                logger.warning("Loyer %s non trouvé, ignoré", loyer_id)
                outcome.skipped_loyer_ids.append(loyer_id)
                continue
            outcome.loyers.append(apply_payments(db, loyer, entries, now))

        if outcome.loyers:
            metadata = metadata_cls(
                nombre_paiements=outcome.paiements_crees,
                montant_total=float(outcome.montant_total),
                loyers=[
                    MouvementLoyer(
                        loyer_id=o.loyer_id,
                        periode=period_label(o.mois, o.annee),
                        nombre_paiements=o.nombre_paiements,
                        montant_total=float(o.montant_total),
                        ancien_statut=o.ancien_statut,
                        nouveau_statut=o.nouveau_statut,
                        quittance_id=o.quittance_id,
                    )
                    for o in outcome.loyers
                ],
            )
            write_history(
                db,
                contrat_id,
                metadata,
                f"{label}: {outcome.paiements_crees} paiement(s) pour un total de "
                f"{outcome.montant_total}€",
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Échec de l'enregistrement des paiements du contrat %s", contrat_id)
        raise

    return outcome


def record_payments(
    db: Session,
    loyer_id: int,
    entries: list[PaymentEntry],
    action: HistoriqueAction = HistoriqueAction.PAIEMENT_ENREGISTRE,
    now: date | datetime | None = None,
) -> BatchOutcome | None:
    """Record payments against a single rent record. None if it does not exist."""
    loyer = db.get(Loyer, loyer_id)
    if loyer is None:
        logger.warning("Loyer %s non trouvé, ignoré", loyer_id)
        return None
    return record_lease_batch(db, loyer.contrat_id, {loyer_id: entries}, action=action, now=now)
