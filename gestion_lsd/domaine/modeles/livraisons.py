from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gestion_lsd.domaine.enums.types import PrioriteLivraison, StatutLivraison
from gestion_lsd.domaine.modeles.base import ModeleHorodate, type_enum


class Livraison(ModeleHorodate):
    """Livraison d’une commande "à livrer".

    Une seule livraison par commande. Le statut n’évolue que via
    `ServiceLivraison` (table de transitions).
    """

    __tablename__ = "livraison"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    commande_code: Mapped[str] = mapped_column(
        String(40),
        ForeignKey("commande.code"),
        nullable=False,
        unique=True,
    )

    statut: Mapped[StatutLivraison] = mapped_column(type_enum(StatutLivraison, "statut_livraison"), nullable=False)
    priorite: Mapped[PrioriteLivraison] = mapped_column(
        type_enum(PrioriteLivraison, "priorite_livraison"),
        nullable=False,
        default=PrioriteLivraison.NORMALE,
    )

    adresse_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("adresse.id"), nullable=True)
    client_nom: Mapped[str | None] = mapped_column(String(200), nullable=True)
    client_telephone: Mapped[str | None] = mapped_column(String(14), nullable=True)

    livreur_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("membre_personnel.id"), nullable=True)
    livreur_nom: Mapped[str | None] = mapped_column(String(250), nullable=True)
    colis_recupere: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    motif_annulation: Mapped[str | None] = mapped_column(Text, nullable=True)

    assignee_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    recuperee_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    demarree_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    livree_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    annulee_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    cree_par: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("user.id"), nullable=True)


Index("ix_livraison_statut", Livraison.statut)
Index("ix_livraison_livreur", Livraison.livreur_id)
