from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.domaine.enums.types import TypeCompteComptable, TypeOperationComptable, TypeTresorerie
from gestion_lsd.domaine.modeles.base import ModeleHorodate, type_enum


class CompteComptable(ModeleHorodate):
    """Compte du plan OHADA utilisé par les opérations."""

    __tablename__ = "compte_comptable"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    code_ohada: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    type_compte: Mapped[TypeCompteComptable] = mapped_column(
        type_enum(TypeCompteComptable, "type_compte_comptable"),
        nullable=False,
    )

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Tresorerie(ModeleHorodate):
    __tablename__ = "tresorerie"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    numero: Mapped[str | None] = mapped_column(String(60), nullable=True)

    type_tresorerie: Mapped[TypeTresorerie] = mapped_column(
        type_enum(TypeTresorerie, "type_tresorerie"),
        nullable=False,
    )

    solde: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class SemaineComptable(ModeleHorodate):
    """Semaine comptable matérialisée (lundi -> dimanche, bornée à l’année)."""

    __tablename__ = "semaine_comptable"
    __table_args__ = (
        UniqueConstraint("annee", "code", name="uq_semaine_comptable_annee_code"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    annee: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str] = mapped_column(String(3), nullable=False)
    numero: Mapped[int] = mapped_column(Integer, nullable=False)
    date_debut: Mapped[date] = mapped_column(Date, nullable=False)
    date_fin: Mapped[date] = mapped_column(Date, nullable=False)

    cloture: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cloturee_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class OperationComptable(ModeleHorodate):
    __tablename__ = "operation_comptable"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    date_operation: Mapped[date] = mapped_column(Date, nullable=False)
    type_operation: Mapped[TypeOperationComptable] = mapped_column(
        type_enum(TypeOperationComptable, "type_operation_comptable"),
        nullable=False,
    )
    montant: Mapped[int] = mapped_column(Integer, nullable=False)
    observation: Mapped[str | None] = mapped_column(Text, nullable=True)

    compte_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("compte_comptable.id"), nullable=False)
    tresorerie_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tresorerie.id"), nullable=False)
    semaine_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("semaine_comptable.id"), nullable=False)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    cree_par: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("user.id"), nullable=True)

    compte = relationship("CompteComptable", lazy="joined")
    semaine = relationship("SemaineComptable", lazy="joined")


Index("ix_operation_comptable_semaine", OperationComptable.semaine_id)
Index("ix_operation_comptable_date", OperationComptable.date_operation)
