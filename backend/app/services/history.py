"""
Lease history (audit trail).

Each action kind has its own metadata model; the row stores the model's JSON
dump so the payload keys stay stable for the frontend.
"""
import logging
from datetime import datetime
from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.models.enums import HistoriqueAction, StatutContrat, StatutLoyer
from app.models.historique import ContratHistorique

logger = logging.getLogger("history")


class _Metadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: ClassVar[HistoriqueAction]


class MouvementLoyer(_Metadata):
    loyer_id: int
    periode: str
    nombre_paiements: int
    montant_total: float
    ancien_statut: StatutLoyer
    nouveau_statut: StatutLoyer
    quittance_id: int | None = None


class ImportPaiementsMetadata(_Metadata):
    action: ClassVar[HistoriqueAction] = HistoriqueAction.IMPORT_PAIEMENTS_EXCEL

    kind: Literal["IMPORT_PAIEMENTS_EXCEL"] = "IMPORT_PAIEMENTS_EXCEL"
    nombre_paiements: int
    montant_total: float
    loyers: list[MouvementLoyer]


class PaiementEnregistreMetadata(_Metadata):
    action: ClassVar[HistoriqueAction] = HistoriqueAction.PAIEMENT_ENREGISTRE

    kind: Literal["PAIEMENT_ENREGISTRE"] = "PAIEMENT_ENREGISTRE"
    nombre_paiements: int
    montant_total: float
    loyers: list[MouvementLoyer]


class CreationContratMetadata(_Metadata):
    action: ClassVar[HistoriqueAction] = HistoriqueAction.CREATION

    kind: Literal["CREATION"] = "CREATION"
    bien_id: int
    locataire_ids: list[int]
    montant_mensuel: float


class GenerationLoyersMetadata(_Metadata):
    action: ClassVar[HistoriqueAction] = HistoriqueAction.GENERATION_LOYERS

    kind: Literal["GENERATION_LOYERS"] = "GENERATION_LOYERS"
    periodes: list[str]
    nombre_loyers: int
    montant_total: float


class ChangementStatutLoyer(_Metadata):
    loyer_id: int
    ancien_statut: StatutLoyer
    nouveau_statut: StatutLoyer


class RecalculStatutsMetadata(_Metadata):
    action: ClassVar[HistoriqueAction] = HistoriqueAction.RECALCUL_STATUTS

    kind: Literal["RECALCUL_STATUTS"] = "RECALCUL_STATUTS"
    changements: list[ChangementStatutLoyer]


class ChangementStatutContratMetadata(_Metadata):
    action: ClassVar[HistoriqueAction] = HistoriqueAction.CHANGEMENT_STATUT

    kind: Literal["CHANGEMENT_STATUT"] = "CHANGEMENT_STATUT"
    ancien_statut: StatutContrat
    nouveau_statut: StatutContrat
    motif: str | None = None


HistoryMetadata = Annotated[
    Union[
        CreationContratMetadata,
        ImportPaiementsMetadata,
        PaiementEnregistreMetadata,
        GenerationLoyersMetadata,
        RecalculStatutsMetadata,
        ChangementStatutContratMetadata,
    ],
    Field(discriminator="kind"),
]

_metadata_adapter = TypeAdapter(HistoryMetadata)


def parse_metadata(raw: dict | None):
    """Rebuild the typed metadata of a stored history row (None if absent)."""
    if raw is None:
        return None
    return _metadata_adapter.validate_python(raw)


def write_history(
    db: Session,
    contrat_id: int,
    metadata: _Metadata,
    description: str,
    when: datetime | None = None,
) -> ContratHistorique:
    """Add a history row to the current transaction. The caller commits."""
    entry = ContratHistorique(
        contrat_id=contrat_id,
        action=metadata.action,
        description=description,
        date_action=when or datetime.now(),
        metadonnees=metadata.model_dump(mode="json", by_alias=True),
    )
    db.add(entry)
    logger.debug("History %s for contrat %s: %s", metadata.action.value, contrat_id, description)
    return entry
