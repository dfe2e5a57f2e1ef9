"""
Response schemas shared by several routers. Attribute names follow the
models (snake_case); JSON keys are camelCase.
"""
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.enums import (
    HistoriqueAction,
    ModeEnvoi,
    ModePaiement,
    StatutContrat,
    StatutLoyer,
    StatutQuittance,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, alias_generator=to_camel)


class ProprietaireResponse(CamelModel):
    id: int
    nom: str
    prenom: str | None
    adresse: str | None
    code_postal: str | None
    ville: str | None
    email: str | None
    telephone: str | None


class BienResponse(CamelModel):
    id: int
    adresse: str
    code_postal: str | None
    ville: str
    type: str
    proprietaire_id: int | None
    is_active: bool


class LocataireResponse(CamelModel):
    id: int
    nom: str
    prenom: str | None
    email: str | None
    telephone: str | None


class ContratResponse(CamelModel):
    id: int
    bien_id: int
    date_debut: date
    date_fin: date | None
    loyer: float
    charges_mensuelles: float
    jour_paiement: int
    statut: StatutContrat
    bien: BienResponse | None = None
    locataires: list[LocataireResponse] = []


class PaiementResponse(CamelModel):
    id: int
    loyer_id: int
    montant: float
    date: date
    mode: ModePaiement
    payeur: str
    reference: str | None
    commentaire: str | None


class QuittanceResponse(CamelModel):
    id: int
    loyer_id: int
    periode: str
    montant: float
    statut: StatutQuittance
    mode_envoi: ModeEnvoi
    email_envoye: bool
    date_generation: datetime | None
    date_envoi: datetime | None


class LoyerResponse(CamelModel):
    id: int
    contrat_id: int
    mois: int
    annee: int
    montant_du: float
    montant_paye: float
    date_echeance: date
    statut: StatutLoyer
    commentaires: str | None


class LoyerDetailResponse(LoyerResponse):
    paiements: list[PaiementResponse] = []
    quittance: QuittanceResponse | None = None


class HistoriqueResponse(CamelModel):
    id: int
    contrat_id: int
    action: HistoriqueAction
    description: str | None
    date_action: datetime
    metadonnees: dict | None = Field(default=None, serialization_alias="metadata")
