from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base
from app.models.enums import HistoriqueAction


class ContratHistorique(Base):
    """Append-only audit row attached to a lease."""

    __tablename__ = "contrat_historique"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    contrat_id: Mapped[int] = mapped_column(ForeignKey("contrats.id"), nullable=False, index=True)
    action: Mapped[HistoriqueAction] = mapped_column(
        Enum(HistoriqueAction, native_enum=False, length=40), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date_action: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    # `metadata` is reserved on declarative classes; payload built by app.services.history
    metadonnees: Mapped[dict | None] = mapped_column("metadata", JSON)

    contrat: Mapped["Contrat"] = relationship(  # noqa: F821
        "Contrat", back_populates="historique"
    )
