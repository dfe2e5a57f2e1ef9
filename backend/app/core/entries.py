from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from app.models.enums import ModePaiement


@dataclass(frozen=True)
class PaymentEntry:
    """One payment to append to a rent record."""

    montant: Decimal
    date: date
    mode: ModePaiement = ModePaiement.VIREMENT
    payeur: str = "Locataire"
    reference: str | None = None
    commentaire: str | None = None

    def __post_init__(self):
        if Decimal(str(self.montant)) <= 0:
            raise ValueError("Le montant doit être positif")


@dataclass
class ImportCandidate:
    """
    A validated spreadsheet row, not yet matched to a rent record.
    Every lookup is constrained to (mois, annee).
    """

    row_number: int
    mois: int
    annee: int
    entries: list[PaymentEntry] = field(default_factory=list)
    contrat_id: str | None = None
    adresse: str | None = None
    ville: str | None = None
    nom_locataire: str | None = None
    # address as written in the sheet, used in error messages
    libelle: str | None = None

    @property
    def label(self) -> str:
        where = self.libelle or " ".join(p for p in (self.adresse, self.ville) if p) or self.nom_locataire or ""
        return f"{where} {self.mois}/{self.annee}".strip()
