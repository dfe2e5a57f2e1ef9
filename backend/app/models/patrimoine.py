from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base


class Proprietaire(Base):
    __tablename__ = "proprietaires"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    nom: Mapped[str] = mapped_column(String(100), nullable=False)
    prenom: Mapped[str] = mapped_column(String(100), nullable=False)
    adresse: Mapped[str | None] = mapped_column(Text)
    code_postal: Mapped[str | None] = mapped_column(String(10))
    ville: Mapped[str | None] = mapped_column(String(100))
    email: Mapped[str | None] = mapped_column(String(200))
    telephone: Mapped[str | None] = mapped_column(String(30))

    biens: Mapped[list["Bien"]] = relationship("Bien", back_populates="proprietaire")


class Bien(Base):
    __tablename__ = "biens"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    adresse: Mapped[str] = mapped_column(Text, nullable=False)
    code_postal: Mapped[str | None] = mapped_column(String(10))
    ville: Mapped[str] = mapped_column(String(100), nullable=False)
    # type: 'APPARTEMENT' | 'MAISON' | 'STUDIO' | 'LOCAL' | ...
    type: Mapped[str] = mapped_column(String(30), default="APPARTEMENT")
    proprietaire_id: Mapped[int | None] = mapped_column(ForeignKey("proprietaires.id"), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    proprietaire: Mapped["Proprietaire | None"] = relationship(
        "Proprietaire", back_populates="biens"
    )
    contrats: Mapped[list["Contrat"]] = relationship(  # noqa: F821
        "Contrat", back_populates="bien"
    )


class Locataire(Base):
    __tablename__ = "locataires"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    nom: Mapped[str] = mapped_column(String(100), nullable=False)
    prenom: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200))
    telephone: Mapped[str | None] = mapped_column(String(30))

    contrats: Mapped[list["Contrat"]] = relationship(  # noqa: F821
        "Contrat", secondary="contrat_locataires", back_populates="locataires"
    )

    @property
    def nom_complet(self) -> str:
        return f"{self.prenom} {self.nom}"
