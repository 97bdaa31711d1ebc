from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.domaine.modeles.base import ModeleHorodate


class Adresse(ModeleHorodate):
    """Adresse de livraison.

    La hiérarchie département -> commune -> arrondissement -> quartier est
    portée par des libellés (pas de tables de référence) : c’est la saisie
    terrain qui la construit. Seul le département est normalisé.
    """

    __tablename__ = "adresse"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    nom: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    departement: Mapped[str] = mapped_column(String(50), nullable=False)
    commune: Mapped[str] = mapped_column(String(120), nullable=False)
    arrondissement: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    quartier: Mapped[str] = mapped_column(String(120), nullable=False, default="")

    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    cree_par: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("user.id"), nullable=True)

    tarifs: Mapped[list["TarifLivraison"]] = relationship(
        "TarifLivraison",
        back_populates="adresse",
        cascade="all, delete-orphan",
    )


class TarifLivraison(ModeleHorodate):
    """Tarif pratiqué par un livreur pour une adresse."""

    __tablename__ = "tarif_livraison"
    __table_args__ = (
        UniqueConstraint("adresse_id", "livreur_id", name="uq_tarif_livraison_adresse_livreur"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    adresse_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("adresse.id"), nullable=False, index=True)
    livreur_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("membre_personnel.id"), nullable=False)
    livreur_nom: Mapped[str] = mapped_column(String(250), nullable=False)
    tarif: Mapped[int] = mapped_column(Integer, nullable=False)

    adresse: Mapped[Adresse] = relationship("Adresse", back_populates="tarifs")


Index("ix_adresse_departement_commune", Adresse.departement, Adresse.commune)
