from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base
from app.models.enums import ModePaiement, StatutLoyer


class Loyer(Base):
    """One row = one month of rent owed under one lease."""

    __tablename__ = "loyers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    contrat_id: Mapped[int] = mapped_column(ForeignKey("contrats.id"), nullable=False, index=True)
    mois: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-12
    annee: Mapped[int] = mapped_column(Integer, nullable=False)
    montant_du: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # sum of the Paiement rows, never decreases
    montant_paye: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    date_echeance: Mapped[date] = mapped_column(Date, nullable=False)
    statut: Mapped[StatutLoyer] = mapped_column(
        Enum(StatutLoyer, native_enum=False, length=20),
        nullable=False,
        default=StatutLoyer.EN_ATTENTE,
    )
    commentaires: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (UniqueConstraint("contrat_id", "mois", "annee", name="uq_contrat_periode"),)

    contrat: Mapped["Contrat"] = relationship("Contrat", back_populates="loyers")  # noqa: F821
    paiements: Mapped[list["Paiement"]] = relationship(
        "Paiement", back_populates="loyer", order_by="Paiement.date"
    )
    quittance: Mapped["Quittance | None"] = relationship(  # noqa: F821
        "Quittance", back_populates="loyer", uselist=False
    )


class Paiement(Base):
    __tablename__ = "paiements"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    loyer_id: Mapped[int] = mapped_column(ForeignKey("loyers.id"), nullable=False, index=True)
    montant: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    mode: Mapped[ModePaiement] = mapped_column(
        Enum(ModePaiement, native_enum=False, length=20),
        nullable=False,
        default=ModePaiement.VIREMENT,
    )
    payeur: Mapped[str] = mapped_column(String(200), nullable=False, default="Locataire")
    reference: Mapped[str | None] = mapped_column(String(200))
    commentaire: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    loyer: Mapped["Loyer"] = relationship("Loyer", back_populates="paiements")
