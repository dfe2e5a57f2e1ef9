from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base
from app.models.enums import ModeEnvoi, StatutQuittance


class Quittance(Base):
    __tablename__ = "quittances"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    # at most one receipt per rent record
    loyer_id: Mapped[int] = mapped_column(
        ForeignKey("loyers.id"), nullable=False, unique=True, index=True
    )
    periode: Mapped[str] = mapped_column(String(50), nullable=False)  # "Janvier 2024"
    montant: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    statut: Mapped[StatutQuittance] = mapped_column(
        Enum(StatutQuittance, native_enum=False, length=20),
        nullable=False,
        default=StatutQuittance.GENEREE,
    )
    mode_envoi: Mapped[ModeEnvoi] = mapped_column(
        Enum(ModeEnvoi, native_enum=False, length=20),
        nullable=False,
        default=ModeEnvoi.EMAIL,
    )
    email_envoye: Mapped[bool] = mapped_column(Boolean, default=False)
    date_generation: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    date_envoi: Mapped[datetime | None] = mapped_column(DateTime)
    pdf_path: Mapped[str | None] = mapped_column(Text)

    loyer: Mapped["Loyer"] = relationship("Loyer", back_populates="quittance")  # noqa: F821
