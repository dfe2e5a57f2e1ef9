from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.responses import dump, dump_all, success_response
from app.api.schemas import CamelModel, LocataireResponse
from app.db.database import get_db
from app.models.patrimoine import Locataire

router = APIRouter()


class LocataireCreate(CamelModel):
    nom: str
    prenom: str
    email: str | None = None
    telephone: str | None = None


@router.get("/")
def list_locataires(search: str | None = None, db: Session = Depends(get_db)):
    q = db.query(Locataire)
    if search:
        q = q.filter(
            or_(
                Locataire.nom.icontains(search, autoescape=True),
                Locataire.prenom.icontains(search, autoescape=True),
            )
        )
    return success_response(dump_all(LocataireResponse, q.order_by(Locataire.nom, Locataire.prenom).all()))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_locataire(data: LocataireCreate, db: Session = Depends(get_db)):
    locataire = Locataire(**data.model_dump())
    db.add(locataire)
    db.commit()
    db.refresh(locataire)
    return success_response(dump(LocataireResponse, locataire), "Locataire créé avec succès")


@router.get("/{locataire_id}")
def get_locataire(locataire_id: int, db: Session = Depends(get_db)):
    locataire = db.get(Locataire, locataire_id)
    if not locataire:
        raise HTTPException(status_code=404, detail="Locataire introuvable.")
    return success_response(dump(LocataireResponse, locataire))
