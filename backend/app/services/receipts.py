import logging

from sqlalchemy.orm import Session

from app.core.periods import period_label
from app.core.status import is_transition_to_paid
from app.models.enums import ModeEnvoi, StatutLoyer, StatutQuittance
from app.models.loyer import Loyer
from app.models.quittance import Quittance

logger = logging.getLogger("receipts")


def issue_receipt(db: Session, loyer: Loyer, previous_statut: StatutLoyer) -> Quittance | None:
    """
    Create the receipt of a rent record that just became fully paid.

    Only a transition into PAYE triggers issuance, and a rent record never gets
    more than one receipt: replaying the same transition is a no-op.
    Runs inside the caller's transaction (flush, no commit).
    """
    if not is_transition_to_paid(previous_statut, loyer.statut):
        return None

    existing = db.query(Quittance).filter(Quittance.loyer_id == loyer.id).first()
    if existing:
        logger.info("Loyer %s already has receipt %s, nothing issued", loyer.id, existing.id)
        return None

    quittance = Quittance(
        loyer_id=loyer.id,
        periode=period_label(loyer.mois, loyer.annee),
        montant=loyer.montant_du,
        statut=StatutQuittance.GENEREE,
        mode_envoi=ModeEnvoi.EMAIL,
        email_envoye=False,
    )
    db.add(quittance)
    db.flush()
    logger.info("Receipt %s issued for loyer %s (%s)", quittance.id, loyer.id, quittance.periode)
    return quittance
