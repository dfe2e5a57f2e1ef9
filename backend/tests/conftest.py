import os
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set env vars BEFORE any app imports
_here = Path(__file__).parent
os.environ["RENTAL_CONSTANTS_PATH"] = str(_here.parent / "app" / "constants" / "gestion_locative.yaml")

# Use a temp file-based SQLite so all connections share the same database
_db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_db_file.close()
_TEST_DB_URL = f"sqlite:///{_db_file.name}"
os.environ["DATABASE_URL"] = _TEST_DB_URL

from app.db.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.bail import Contrat  # noqa: E402
from app.models.enums import StatutContrat, StatutLoyer  # noqa: E402
from app.models.loyer import Loyer  # noqa: E402
from app.models.patrimoine import Bien, Locataire, Proprietaire  # noqa: E402

_test_engine = create_engine(_TEST_DB_URL, connect_args={"check_same_thread": False})
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=_test_engine)
    yield
    Base.metadata.drop_all(bind=_test_engine)


@pytest.fixture
def session_factory():
    return _TestSessionLocal


@pytest.fixture
def db():
    session = _TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_contrat(db):
    """Property + tenant + lease, committed. Keyword overrides go to the Contrat."""

    def _make(
        adresse="12 rue des Lilas",
        ville="Cambrai",
        nom="Martin",
        prenom="Julie",
        **overrides,
    ) -> Contrat:
        proprietaire = Proprietaire(nom="Durand", prenom="Paul", ville="Lille")
        bien = Bien(adresse=adresse, code_postal="59400", ville=ville, proprietaire=proprietaire)
        locataire = Locataire(nom=nom, prenom=prenom, email=f"{prenom.lower()}@example.com")
        fields = {
            "date_debut": date(2024, 1, 1),
            "loyer": Decimal("1000"),
            "charges_mensuelles": Decimal("50"),
            "jour_paiement": 5,
            "statut": StatutContrat.ACTIF,
        }
        fields.update(overrides)
        contrat = Contrat(bien=bien, locataires=[locataire], **fields)
        db.add(contrat)
        db.commit()
        db.refresh(contrat)
        return contrat

    return _make


@pytest.fixture
def make_loyer(db):
    def _make(contrat: Contrat, mois: int, annee: int, montant_du="1050", montant_paye="0", **overrides) -> Loyer:
        fields = {
            "date_echeance": date(annee, mois, 5),
            "statut": StatutLoyer.EN_ATTENTE,
        }
        fields.update(overrides)
        loyer = Loyer(
            contrat_id=contrat.id,
            mois=mois,
            annee=annee,
            montant_du=Decimal(montant_du),
            montant_paye=Decimal(montant_paye),
            **fields,
        )
        db.add(loyer)
        db.commit()
        db.refresh(loyer)
        return loyer

    return _make


@pytest.fixture
def write_xlsx(tmp_path):
    """Write header + rows to a fresh workbook and return its path."""

    def _write(headers: list[str], rows: list[list], name: str = "paiements.xlsx") -> Path:
        wb = Workbook()
        ws = wb.active
        ws.append(headers)
        for row in rows:
            ws.append(row)
        path = tmp_path / name
        wb.save(path)
        return path

    return _write
