from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gestion_lsd.domaine.enums.types import FonctionPersonnel
from gestion_lsd.domaine.modeles.base import ModeleHorodate, type_enum


class MembrePersonnel(ModeleHorodate):
    """Livreur, cuisinier ou vendeuse.

    `identifiant` = fonction + téléphone : c’est la clé métier, unique.
    """

    __tablename__ = "membre_personnel"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    identifiant: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)

    fonction: Mapped[FonctionPersonnel] = mapped_column(
        type_enum(FonctionPersonnel, "fonction_personnel"),
        nullable=False,
    )

    nom: Mapped[str] = mapped_column(String(120), nullable=False)
    prenoms: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    telephone: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # communes / quartiers desservis (livreurs surtout)
    zones: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def nom_complet(self) -> str:
        return f"{self.nom} {self.prenoms}".strip()


Index("ix_membre_personnel_fonction_actif", MembrePersonnel.fonction, MembrePersonnel.actif)
