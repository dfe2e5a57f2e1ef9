"""
Enumerations shared by the models, the API and the importers.
Values are part of the contract with the frontend: never rename them.
"""
import enum


class StatutLoyer(str, enum.Enum):
    EN_ATTENTE = "EN_ATTENTE"
    PARTIEL = "PARTIEL"
    PAYE = "PAYE"
    RETARD = "RETARD"


class ModePaiement(str, enum.Enum):
    VIREMENT = "VIREMENT"
    CHEQUE = "CHEQUE"
    ESPECES = "ESPECES"
    CARTE = "CARTE"
    PRELEVEMENT = "PRELEVEMENT"
    AUTRE = "AUTRE"


class StatutContrat(str, enum.Enum):
    ACTIF = "ACTIF"
    RESILIE = "RESILIE"
    EXPIRE = "EXPIRE"
    SUSPENDU = "SUSPENDU"


class StatutQuittance(str, enum.Enum):
    GENEREE = "GENEREE"
    ENVOYEE = "ENVOYEE"


class ModeEnvoi(str, enum.Enum):
    EMAIL = "EMAIL"
    COURRIER = "COURRIER"
    REMISE_MAIN = "REMISE_MAIN"


class HistoriqueAction(str, enum.Enum):
    CREATION = "CREATION"
    GENERATION_LOYERS = "GENERATION_LOYERS"
    PAIEMENT_ENREGISTRE = "PAIEMENT_ENREGISTRE"
    IMPORT_PAIEMENTS_EXCEL = "IMPORT_PAIEMENTS_EXCEL"
    RECALCUL_STATUTS = "RECALCUL_STATUTS"
    CHANGEMENT_STATUT = "CHANGEMENT_STATUT"
