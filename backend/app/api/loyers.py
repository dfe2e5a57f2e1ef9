from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.responses import dump, dump_all, paginate, success_response
from app.api.schemas import CamelModel, LoyerDetailResponse, LoyerResponse
from app.core.entries import PaymentEntry
from app.db.database import get_db
from app.models.bail import Contrat
from app.models.enums import ModePaiement, StatutLoyer
from app.models.loyer import Loyer
from app.models.patrimoine import Bien, Locataire
from app.services.payment_recorder import record_payments
from app.services.rent_generation import generate_all_missing_rents, recalculate_statuses

router = APIRouter()


class PaiementCreate(CamelModel):
    montant: float
    date: date
    mode: ModePaiement = ModePaiement.VIREMENT
    payeur: str = "Locataire"
    reference: str | None = None
    commentaire: str | None = None

    @field_validator("montant")
    @classmethod
    def montant_positive(cls, v):
        if v <= 0:
            raise ValueError("Le montant doit être positif.")
        return v

    @field_validator("payeur")
    @classmethod
    def payeur_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Le payeur est obligatoire.")
        return v.strip()


def _get_loyer_or_404(loyer_id: int, db: Session) -> Loyer:
    loyer = db.query(Loyer).filter(Loyer.id == loyer_id).first()
    if not loyer:
        raise HTTPException(status_code=404, detail="Loyer introuvable.")
    return loyer


@router.get("/")
def list_loyers(
    statut: StatutLoyer | None = None,
    mois: int | None = None,
    annee: int | None = None,
    contrat_id: int | None = Query(None, alias="contratId"),
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = db.query(Loyer)
    if statut:
        q = q.filter(Loyer.statut == statut)
    if mois:
        q = q.filter(Loyer.mois == mois)
    if annee:
        q = q.filter(Loyer.annee == annee)
    if contrat_id:
        q = q.filter(Loyer.contrat_id == contrat_id)
    if search:
        q = q.filter(
            or_(
                Loyer.commentaires.icontains(search, autoescape=True),
                Loyer.contrat.has(Contrat.bien.has(Bien.adresse.icontains(search, autoescape=True))),
                Loyer.contrat.has(
                    Contrat.locataires.any(
                        or_(
                            Locataire.nom.icontains(search, autoescape=True),
                            Locataire.prenom.icontains(search, autoescape=True),
                        )
                    )
                ),
            )
        )
    q = q.order_by(Loyer.annee.desc(), Loyer.mois.desc(), Loyer.date_echeance.desc())
    loyers, pagination = paginate(q, page, limit)
    return success_response({"loyers": dump_all(LoyerDetailResponse, loyers), "pagination": pagination})


@router.post("/recalculate-statuts")
def recalculate_statuts(contrat_id: int | None = Query(None, alias="contratId"), db: Session = Depends(get_db)):
    updates = recalculate_statuses(db, contrat_id=contrat_id)
    return success_response({"updates": updates}, f"{len(updates)} loyers mis à jour")


@router.post("/generer-loyers-manquants")
def generer_loyers_manquants(db: Session = Depends(get_db)):
    report = generate_all_missing_rents(db)
    return success_response(
        {
            "loyersCrees": dump_all(LoyerResponse, report.loyers_crees),
            "contratsTraites": report.contrats_traites,
            "erreurs": report.erreurs,
        },
        f"{len(report.loyers_crees)} loyer(s) généré(s) pour {report.contrats_traites} contrat(s) actif(s)",
    )


@router.get("/{loyer_id}")
def get_loyer(loyer_id: int, db: Session = Depends(get_db)):
    return success_response(dump(LoyerDetailResponse, _get_loyer_or_404(loyer_id, db)))


@router.post("/{loyer_id}/paiements", status_code=status.HTTP_201_CREATED)
def add_paiement(loyer_id: int, data: PaiementCreate, db: Session = Depends(get_db)):
    loyer = _get_loyer_or_404(loyer_id, db)

    nouveau_total = Decimal(str(loyer.montant_paye)) + Decimal(str(data.montant))
    if nouveau_total > Decimal(str(loyer.montant_du)):
        raise HTTPException(
            status_code=400,
            detail=(
                f"Le montant total des paiements ({nouveau_total}€) ne peut pas dépasser "
                f"le montant dû ({loyer.montant_du}€)"
            ),
        )

    entry = PaymentEntry(
        montant=Decimal(str(data.montant)),
        date=data.date,
        mode=data.mode,
        payeur=data.payeur,
        reference=data.reference,
        commentaire=data.commentaire,
    )
    outcome = record_payments(db, loyer.id, [entry])
    db.refresh(loyer)
    return success_response(
        {
            "loyer": dump(LoyerDetailResponse, loyer),
            "quittanceGeneree": outcome.quittances_generees > 0,
        },
        "Paiement ajouté avec succès",
    )
