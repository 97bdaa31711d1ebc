from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.enums.types import FamilleEmplacement, TypeOperationEmplacement
from gestion_lsd.domaine.modeles.base import BaseModele, ModeleHorodate, type_enum


class Emplacement(ModeleHorodate):
    """Lieu physique : entrepôt, point de vente ou stand."""

    __tablename__ = "emplacement"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)

    famille: Mapped[FamilleEmplacement] = mapped_column(
        type_enum(FamilleEmplacement, "famille_emplacement"),
        nullable=False,
    )
    sous_type: Mapped[str | None] = mapped_column(String(120), nullable=True)

    theme: Mapped[str | None] = mapped_column(String(200), nullable=True)
    theme_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Position courante (l’historique est dans operation_emplacement)
    departement: Mapped[str | None] = mapped_column(String(50), nullable=True)
    commune: Mapped[str | None] = mapped_column(String(120), nullable=True)
    arrondissement: Mapped[str | None] = mapped_column(String(120), nullable=True)
    quartier: Mapped[str | None] = mapped_column(String(120), nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    vendeur_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("membre_personnel.id"), nullable=True)
    vendeur_nom: Mapped[str | None] = mapped_column(String(250), nullable=True)

    # {"lun": {"ouvert": true, "ouverture": "08:00", "fermeture": "20:00"}, ...}
    horaires: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    est_ouvert: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class OperationEmplacement(BaseModele):
    """Journal append-only des opérations sur un emplacement."""

    __tablename__ = "operation_emplacement"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    emplacement_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("emplacement.id"), nullable=False)

    type_operation: Mapped[TypeOperationEmplacement] = mapped_column(
        type_enum(TypeOperationEmplacement, "type_operation_emplacement"),
        nullable=False,
    )
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    effectuee_le: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)
    auteur_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("user.id"), nullable=True)

    emplacement = relationship("Emplacement")


Index("ix_emplacement_famille_actif", Emplacement.famille, Emplacement.actif)
Index("ix_operation_emplacement_emplacement", OperationEmplacement.emplacement_id, OperationEmplacement.effectuee_le)
