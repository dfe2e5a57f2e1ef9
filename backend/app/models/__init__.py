from app.models.bail import Contrat, contrat_locataires
from app.models.historique import ContratHistorique
from app.models.loyer import Loyer, Paiement
from app.models.patrimoine import Bien, Locataire, Proprietaire
from app.models.quittance import Quittance

__all__ = [
    "Proprietaire",
    "Bien",
    "Locataire",
    "Contrat",
    "contrat_locataires",
    "Loyer",
    "Paiement",
    "Quittance",
    "ContratHistorique",
]
