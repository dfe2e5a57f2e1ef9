from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import field_validator, model_validator
from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from app.api.responses import dump, dump_all, paginate, success_response
from app.api.schemas import (
    CamelModel,
    ContratResponse,
    HistoriqueResponse,
    LoyerDetailResponse,
    LoyerResponse,
    PaiementResponse,
    QuittanceResponse,
)
from app.db.database import get_db
from app.models.bail import Contrat
from app.models.enums import ModePaiement, StatutContrat, StatutLoyer, StatutQuittance
from app.models.historique import ContratHistorique
from app.models.loyer import Loyer, Paiement
from app.models.patrimoine import Bien, Locataire
from app.models.quittance import Quittance
from app.services.leases import create_lease, lease_stats, terminate_lease
from app.services.rent_generation import generate_missing_rents

router = APIRouter()


class ContratCreate(CamelModel):
    bien_id: int
    locataire_ids: list[int] = []
    date_debut: date
    date_fin: date | None = None
    loyer: float
    charges_mensuelles: float = 0
    jour_paiement: int = 1

    @field_validator("loyer")
    @classmethod
    def loyer_positive(cls, v):
        if v <= 0:
            raise ValueError("Le loyer doit être positif.")
        return v

    @field_validator("charges_mensuelles")
    @classmethod
    def charges_not_negative(cls, v):
        if v < 0:
            raise ValueError("Les charges ne peuvent pas être négatives.")
        return v

    @field_validator("jour_paiement")
    @classmethod
    def valid_jour(cls, v):
        if not 1 <= v <= 31:
            raise ValueError("Le jour de paiement doit être entre 1 et 31.")
        return v

    @model_validator(mode="after")
    def fin_after_debut(self):
        if self.date_fin and self.date_fin <= self.date_debut:
            raise ValueError("La date de fin doit être postérieure à la date de début.")
        return self


class ResiliationRequest(CamelModel):
    date_fin: date
    motif: str | None = None


def _get_contrat_or_404(contrat_id: int, db: Session) -> Contrat:
    contrat = db.query(Contrat).filter(Contrat.id == contrat_id).first()
    if not contrat:
        raise HTTPException(status_code=404, detail="Contrat introuvable.")
    return contrat


@router.get("/")
def list_contrats(
    statut: StatutContrat | None = None,
    bien_id: int | None = Query(None, alias="bienId"),
    db: Session = Depends(get_db),
):
    q = db.query(Contrat)
    if statut:
        q = q.filter(Contrat.statut == statut)
    if bien_id:
        q = q.filter(Contrat.bien_id == bien_id)
    contrats = q.order_by(Contrat.date_debut.desc()).all()
    return success_response(dump_all(ContratResponse, contrats))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_contrat(data: ContratCreate, db: Session = Depends(get_db)):
    if not db.get(Bien, data.bien_id):
        raise HTTPException(status_code=404, detail="Bien introuvable.")
    locataires = db.query(Locataire).filter(Locataire.id.in_(data.locataire_ids)).all()
    if len(locataires) != len(set(data.locataire_ids)):
        raise HTTPException(status_code=404, detail="Locataire introuvable.")

    contrat = create_lease(db, locataires, **data.model_dump(exclude={"locataire_ids"}))
    return success_response(dump(ContratResponse, contrat), "Contrat créé avec succès")


@router.get("/{contrat_id}")
def get_contrat(contrat_id: int, db: Session = Depends(get_db)):
    return success_response(dump(ContratResponse, _get_contrat_or_404(contrat_id, db)))


@router.put("/{contrat_id}/resiliation")
def resilier_contrat(contrat_id: int, data: ResiliationRequest, db: Session = Depends(get_db)):
    contrat = _get_contrat_or_404(contrat_id, db)
    if contrat.statut == StatutContrat.RESILIE:
        raise HTTPException(status_code=400, detail="Ce contrat est déjà résilié.")
    if data.date_fin < contrat.date_debut:
        raise HTTPException(
            status_code=400, detail="La date de fin ne peut pas précéder le début du contrat."
        )
    contrat = terminate_lease(db, contrat, data.date_fin, data.motif)
    return success_response(dump(ContratResponse, contrat), "Contrat résilié avec succès")


@router.get("/{contrat_id}/details")
def get_contrat_details(contrat_id: int, db: Session = Depends(get_db)):
    contrat = _get_contrat_or_404(contrat_id, db)
    # rent records owed up to today are created before the summary is computed
    generate_missing_rents(db, contrat)

    stats = lease_stats(db, contrat.id)
    activite = stats["activite"]
    if activite["dernierPaiement"] is not None:
        activite["dernierPaiement"] = dump(PaiementResponse, activite["dernierPaiement"])
    if activite["prochainLoyer"] is not None:
        activite["prochainLoyer"] = dump(LoyerResponse, activite["prochainLoyer"])

    paiements_par_mode = (
        db.query(Paiement.mode, func.count(Paiement.id), func.sum(Paiement.montant))
        .join(Paiement.loyer)
        .filter(Loyer.contrat_id == contrat.id)
        .group_by(Paiement.mode)
        .order_by(func.sum(Paiement.montant).desc())
        .all()
    )
    return success_response(
        {
            "contrat": dump(ContratResponse, contrat),
            "stats": stats,
            "paiementsParMode": [
                {"mode": mode.value, "nombre": nombre, "montant": float(montant or 0)}
                for mode, nombre, montant in paiements_par_mode
            ],
        }
    )


@router.get("/{contrat_id}/loyers")
def list_contrat_loyers(
    contrat_id: int,
    annee: int | None = None,
    statut: StatutLoyer | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    _get_contrat_or_404(contrat_id, db)
    q = db.query(Loyer).filter(Loyer.contrat_id == contrat_id)
    if annee:
        q = q.filter(Loyer.annee == annee)
    if statut:
        q = q.filter(Loyer.statut == statut)
    loyers, pagination = paginate(q.order_by(Loyer.annee.desc(), Loyer.mois.desc()), page, limit)
    return success_response(
        {"loyers": dump_all(LoyerDetailResponse, loyers), "pagination": pagination}
    )


@router.post("/{contrat_id}/generer-loyers-manquants")
def generer_loyers_contrat(contrat_id: int, db: Session = Depends(get_db)):
    contrat = _get_contrat_or_404(contrat_id, db)
    crees = generate_missing_rents(db, contrat)
    return success_response(
        {"loyersCrees": dump_all(LoyerResponse, crees), "nombre": len(crees)},
        f"{len(crees)} loyer(s) généré(s)",
    )


@router.get("/{contrat_id}/paiements")
def list_contrat_paiements(
    contrat_id: int,
    mode: ModePaiement | None = None,
    annee: int | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    _get_contrat_or_404(contrat_id, db)
    q = db.query(Paiement).join(Paiement.loyer).filter(Loyer.contrat_id == contrat_id)
    if mode:
        q = q.filter(Paiement.mode == mode)
    if annee:
        q = q.filter(extract("year", Paiement.date) == annee)
    paiements, pagination = paginate(q.order_by(Paiement.date.desc(), Paiement.id.desc()), page, limit)
    return success_response(
        {"paiements": dump_all(PaiementResponse, paiements), "pagination": pagination}
    )


@router.get("/{contrat_id}/quittances")
def list_contrat_quittances(
    contrat_id: int,
    statut: StatutQuittance | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    _get_contrat_or_404(contrat_id, db)
    q = db.query(Quittance).join(Quittance.loyer).filter(Loyer.contrat_id == contrat_id)
    if statut:
        q = q.filter(Quittance.statut == statut)
    quittances, pagination = paginate(q.order_by(Loyer.annee.desc(), Loyer.mois.desc()), page, limit)
    return success_response(
        {"quittances": dump_all(QuittanceResponse, quittances), "pagination": pagination}
    )


@router.get("/{contrat_id}/historique")
def list_contrat_historique(contrat_id: int, db: Session = Depends(get_db)):
    _get_contrat_or_404(contrat_id, db)
    entries = (
        db.query(ContratHistorique)
        .filter(ContratHistorique.contrat_id == contrat_id)
        .order_by(ContratHistorique.date_action.desc(), ContratHistorique.id.desc())
        .all()
    )
    return success_response(dump_all(HistoriqueResponse, entries))
