"""
Seed script: loads sample_dataset.json into the database.
Usage: python -m app.db.seed
"""
import json
from datetime import date
from pathlib import Path

from app.db.database import SessionLocal, init_db
from app.models.patrimoine import Bien, Locataire, Proprietaire
from app.services.leases import create_lease
from app.services.rent_generation import generate_missing_rents

DEFAULT_DATASET = Path(__file__).parent.parent.parent / "tests" / "fixtures" / "sample_dataset.json"


def seed(session_factory=SessionLocal, dataset_path: Path = DEFAULT_DATASET, now: date | None = None):
    db = session_factory()
    init_db(db.get_bind())

    with open(dataset_path, encoding="utf-8") as f:
        data = json.load(f)

    try:
        proprietaire = Proprietaire(**data["proprietaire"])
        db.add(proprietaire)
        db.flush()

        nb_loyers = 0
        for bien_data in data["biens"]:
            contrat_data = dict(bien_data.pop("contrat"))
            locataires = [Locataire(**loc) for loc in bien_data.pop("locataires")]
            bien = Bien(proprietaire_id=proprietaire.id, **bien_data)
            db.add(bien)
            db.add_all(locataires)
            db.flush()

            contrat_data["date_debut"] = date.fromisoformat(contrat_data["date_debut"])
            if contrat_data.get("date_fin"):
                contrat_data["date_fin"] = date.fromisoformat(contrat_data["date_fin"])
            contrat = create_lease(db, locataires, bien_id=bien.id, **contrat_data)
            nb_loyers += len(generate_missing_rents(db, contrat, now))

        print(f"✅ Seed completed: {len(data['biens'])} bien(s) for {proprietaire.prenom} {proprietaire.nom}, {nb_loyers} loyer(s) generated.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
