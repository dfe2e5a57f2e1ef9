from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import field_validator
from sqlalchemy.orm import Session

from app.api.responses import dump, dump_all, success_response
from app.api.schemas import BienResponse, CamelModel
from app.db.database import get_db
from app.models.patrimoine import Bien, Proprietaire

router = APIRouter()


class BienCreate(CamelModel):
    adresse: str
    code_postal: str | None = None
    ville: str
    type: str = "APPARTEMENT"
    proprietaire_id: int | None = None

    @field_validator("adresse", "ville")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Ce champ est obligatoire.")
        return v.strip()


@router.get("/")
def list_biens(ville: str | None = None, db: Session = Depends(get_db)):
    q = db.query(Bien).filter(Bien.is_active)
    if ville:
        q = q.filter(Bien.ville.icontains(ville, autoescape=True))
    return success_response(dump_all(BienResponse, q.order_by(Bien.ville, Bien.adresse).all()))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_bien(data: BienCreate, db: Session = Depends(get_db)):
    if data.proprietaire_id and not db.get(Proprietaire, data.proprietaire_id):
        raise HTTPException(status_code=404, detail="Propriétaire introuvable.")
    bien = Bien(**data.model_dump())
    db.add(bien)
    db.commit()
    db.refresh(bien)
    return success_response(dump(BienResponse, bien), "Bien créé avec succès")


@router.get("/{bien_id}")
def get_bien(bien_id: int, db: Session = Depends(get_db)):
    bien = db.query(Bien).filter(Bien.id == bien_id).first()
    if not bien:
        raise HTTPException(status_code=404, detail="Bien introuvable.")
    return success_response(dump(BienResponse, bien))
