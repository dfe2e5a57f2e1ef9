"""Lease lifecycle: creation, termination and the summary shown on the lease page."""
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.bail import Contrat
from app.models.enums import StatutContrat, StatutLoyer
from app.models.loyer import Loyer, Paiement
from app.models.patrimoine import Locataire
from app.models.quittance import Quittance
from app.services.history import (
    ChangementStatutContratMetadata,
    CreationContratMetadata,
    write_history,
)

logger = logging.getLogger("leases")


def create_lease(db: Session, locataires: list[Locataire], **fields) -> Contrat:
    contrat = Contrat(**fields)
    contrat.locataires = list(locataires)
    try:
        db.add(contrat)
        db.flush()
        write_history(
            db,
            contrat.id,
            CreationContratMetadata(
                bien_id=contrat.bien_id,
                locataire_ids=[l.id for l in locataires],
                montant_mensuel=float(contrat.montant_mensuel),
            ),
            "Création du contrat",
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(contrat)
    logger.info("Contrat %s créé pour le bien %s", contrat.id, contrat.bien_id)
    return contrat


def terminate_lease(db: Session, contrat: Contrat, date_fin: date, motif: str | None = None) -> Contrat:
    """Set the lease to RESILIE with its end date. Rent records already generated are kept."""
    ancien = contrat.statut
    contrat.statut = StatutContrat.RESILIE
    contrat.date_fin = date_fin
    try:
        write_history(
            db,
            contrat.id,
            ChangementStatutContratMetadata(
                ancien_statut=ancien, nouveau_statut=StatutContrat.RESILIE, motif=motif
            ),
            f"Résiliation du contrat au {date_fin.strftime('%d/%m/%Y')}",
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(contrat)
    logger.info("Contrat %s résilié au %s", contrat.id, date_fin)
    return contrat


def lease_stats(db: Session, contrat_id: int) -> dict:
    counts = dict(
        db.query(Loyer.statut, func.count(Loyer.id))
        .filter(Loyer.contrat_id == contrat_id)
        .group_by(Loyer.statut)
        .all()
    )
    total = sum(counts.values())
    du, paye = (
        db.query(func.coalesce(func.sum(Loyer.montant_du), 0), func.coalesce(func.sum(Loyer.montant_paye), 0))
        .filter(Loyer.contrat_id == contrat_id)
        .one()
    )
    du, paye = Decimal(str(du)), Decimal(str(paye))
    taux = round(paye / du * 100) if du > 0 else 0

    dernier_paiement = (
        db.query(Paiement)
        .join(Paiement.loyer)
        .filter(Loyer.contrat_id == contrat_id)
        .order_by(Paiement.date.desc(), Paiement.id.desc())
        .first()
    )
    prochain_loyer = (
        db.query(Loyer)
        .filter(Loyer.contrat_id == contrat_id, Loyer.statut != StatutLoyer.PAYE)
        .order_by(Loyer.annee, Loyer.mois)
        .first()
    )
    quittances = (
        db.query(func.count(Quittance.id))
        .join(Quittance.loyer)
        .filter(Loyer.contrat_id == contrat_id)
        .scalar()
    )

    return {
        "loyers": {
            "total": total,
            "payes": counts.get(StatutLoyer.PAYE, 0),
            "enRetard": counts.get(StatutLoyer.RETARD, 0),
            "partiels": counts.get(StatutLoyer.PARTIEL, 0),
            "enAttente": counts.get(StatutLoyer.EN_ATTENTE, 0),
            "tauxPaiement": taux,
        },
        "finances": {
            "montantTotalDu": float(du),
            "montantTotalPaye": float(paye),
            "resteAPayer": float(du - paye),
            "pourcentagePaye": taux,
        },
        "activite": {
            "dernierPaiement": dernier_paiement,
            "prochainLoyer": prochain_loyer,
            "quittancesGenerees": quittances or 0,
        },
    }

