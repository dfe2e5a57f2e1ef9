from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, Table, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base
from app.models.enums import StatutContrat

contrat_locataires = Table(
    "contrat_locataires",
    Base.metadata,
    Column("contrat_id", ForeignKey("contrats.id", ondelete="CASCADE"), primary_key=True),
    Column("locataire_id", ForeignKey("locataires.id", ondelete="CASCADE"), primary_key=True),
)


class Contrat(Base):
    __tablename__ = "contrats"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    bien_id: Mapped[int] = mapped_column(ForeignKey("biens.id"), nullable=False, index=True)
    date_debut: Mapped[date] = mapped_column(Date, nullable=False)
    date_fin: Mapped[date | None] = mapped_column(Date)
    loyer: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    charges_mensuelles: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    # day of month the rent is due, clamped to the month length
    jour_paiement: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    statut: Mapped[StatutContrat] = mapped_column(
        Enum(StatutContrat, native_enum=False, length=20),
        nullable=False,
        default=StatutContrat.ACTIF,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    bien: Mapped["Bien"] = relationship("Bien", back_populates="contrats")  # noqa: F821
    locataires: Mapped[list["Locataire"]] = relationship(  # noqa: F821
        "Locataire", secondary=contrat_locataires, back_populates="contrats"
    )
    loyers: Mapped[list["Loyer"]] = relationship(  # noqa: F821
        "Loyer", back_populates="contrat", cascade="all, delete-orphan"
    )
    historique: Mapped[list["ContratHistorique"]] = relationship(  # noqa: F821
        "ContratHistorique", back_populates="contrat", cascade="all, delete-orphan"
    )

    @property
    def montant_mensuel(self) -> Decimal:
        return Decimal(str(self.loyer)) + Decimal(str(self.charges_mensuelles or 0))
