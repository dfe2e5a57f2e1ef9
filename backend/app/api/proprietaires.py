from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.responses import dump, dump_all, success_response
from app.api.schemas import CamelModel, ProprietaireResponse
from app.db.database import get_db
from app.models.patrimoine import Proprietaire

router = APIRouter()


class ProprietaireCreate(CamelModel):
    nom: str
    prenom: str
    adresse: str | None = None
    code_postal: str | None = None
    ville: str | None = None
    email: str | None = None
    telephone: str | None = None


@router.get("/")
def list_proprietaires(db: Session = Depends(get_db)):
    proprietaires = db.query(Proprietaire).order_by(Proprietaire.nom, Proprietaire.prenom).all()
    return success_response(dump_all(ProprietaireResponse, proprietaires))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_proprietaire(data: ProprietaireCreate, db: Session = Depends(get_db)):
    proprietaire = Proprietaire(**data.model_dump())
    db.add(proprietaire)
    db.commit()
    db.refresh(proprietaire)
    return success_response(dump(ProprietaireResponse, proprietaire), "Propriétaire créé avec succès")
