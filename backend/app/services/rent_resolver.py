"""
Matching of imported rows to existing rent records.

A resolver holds an ordered list of strategies; the first strategy returning a
rent record wins. New heuristics plug in as another strategy without touching
the payment recorder.
"""
import logging
from typing import Protocol

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from app.core.entries import ImportCandidate
from app.models.bail import Contrat
from app.models.loyer import Loyer
from app.models.patrimoine import Bien, Locataire

logger = logging.getLogger("rent_resolver")


class ResolutionStrategy(Protocol):
    name: str

    def resolve(self, db: Session, candidate: ImportCandidate) -> Loyer | None: ...


def _period_query(db: Session, candidate: ImportCandidate) -> Query:
    return db.query(Loyer).filter(Loyer.mois == candidate.mois, Loyer.annee == candidate.annee)


class ContratIdStrategy:
    name = "contrat_id"

    def resolve(self, db: Session, candidate: ImportCandidate) -> Loyer | None:
        if not candidate.contrat_id:
            return None
        try:
            contrat_id = int(str(candidate.contrat_id).strip())
        except ValueError:
            return None
        return _period_query(db, candidate).filter(Loyer.contrat_id == contrat_id).first()


class AddressStrategy:
    """
    Case-insensitive substring match on the property address, optionally
    narrowed by city. With `split_parts`, each address word of at least
    `min_part_length` characters is then tried alone (without city).
    """

    name = "adresse"

    def __init__(self, match_city: bool = False, split_parts: bool = False, min_part_length: int = 4):
        self.match_city = match_city
        self.split_parts = split_parts
        self.min_part_length = min_part_length

    def _query(self, db: Session, candidate: ImportCandidate) -> Query:
        return _period_query(db, candidate).join(Loyer.contrat).join(Contrat.bien)

    def resolve(self, db: Session, candidate: ImportCandidate) -> Loyer | None:
        adresse = (candidate.adresse or "").strip()
        if not adresse:
            return None

        q = self._query(db, candidate).filter(Bien.adresse.icontains(adresse, autoescape=True))
        if self.match_city and candidate.ville:
            q = q.filter(Bien.ville.icontains(candidate.ville, autoescape=True))
        loyer = q.order_by(Loyer.id).first()
        if loyer or not self.split_parts:
            return loyer

        for part in adresse.split():
            if len(part) < self.min_part_length:
                continue
            loyer = (
                self._query(db, candidate)
                .filter(Bien.adresse.icontains(part, autoescape=True))
                .order_by(Loyer.id)
                .first()
            )
            if loyer:
                logger.info("Ligne %s: loyer trouvé (partiel) sur '%s'", candidate.row_number, part)
                return loyer
        return None


class TenantNameStrategy:
    name = "locataire"

    def resolve(self, db: Session, candidate: ImportCandidate) -> Loyer | None:
        nom = (candidate.nom_locataire or "").strip()
        if not nom:
            return None
        return (
            _period_query(db, candidate)
            .join(Loyer.contrat)
            .join(Contrat.locataires)
            .filter(
                or_(
                    Locataire.nom.icontains(nom, autoescape=True),
                    Locataire.prenom.icontains(nom, autoescape=True),
                )
            )
            .order_by(Loyer.id)
            .first()
        )


class RentResolver:
    def __init__(self, strategies: list[ResolutionStrategy]):
        self.strategies = list(strategies)

    def resolve(self, db: Session, candidate: ImportCandidate) -> Loyer | None:
        for strategy in self.strategies:
            loyer = strategy.resolve(db, candidate)
            if loyer is not None:
                logger.info(
                    "Ligne %s: loyer %s trouvé par %s", candidate.row_number, loyer.id, strategy.name
                )
                return loyer
        logger.warning("Ligne %s: aucun loyer trouvé pour %s", candidate.row_number, candidate.label)
        return None
