from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.domaine.enums.types import StatutCommande, TypeArticle, TypeCommande
from gestion_lsd.domaine.modeles.base import BaseModele, ModeleHorodate, type_enum


class Commande(ModeleHorodate):
    """Commande client (sur place ou à livrer).

    Montants en francs CFA entiers. Les libellés (point de vente, vendeur,
    articles) sont copiés au moment de la commande.
    """

    __tablename__ = "commande"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)

    type_commande: Mapped[TypeCommande] = mapped_column(type_enum(TypeCommande, "type_commande"), nullable=False)
    statut: Mapped[StatutCommande] = mapped_column(type_enum(StatutCommande, "statut_commande"), nullable=False)

    client_nom: Mapped[str] = mapped_column(String(200), nullable=False)
    client_telephone: Mapped[str] = mapped_column(String(14), nullable=False)

    point_de_vente_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("emplacement.id"), nullable=False)
    point_de_vente_nom: Mapped[str] = mapped_column(String(200), nullable=False)

    vendeur_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("user.id"), nullable=True)
    vendeur_nom: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Livraison (type a_livrer uniquement)
    adresse_livraison_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("adresse.id"), nullable=True)
    personne_a_livrer: Mapped[str | None] = mapped_column(String(200), nullable=True)
    telephone_a_livrer: Mapped[str | None] = mapped_column(String(14), nullable=True)
    livraison_prevue_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    indication_adresse: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Paiement
    sous_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    frais_livraison: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reduction: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    montant_especes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    montant_momo: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    montant_recu: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monnaie_rendue: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dette: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    lignes: Mapped[list["LigneCommande"]] = relationship(
        "LigneCommande",
        back_populates="commande",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class LigneCommande(ModeleHorodate):
    __tablename__ = "ligne_commande"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    commande_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("commande.id"), nullable=False)

    type_article: Mapped[TypeArticle] = mapped_column(type_enum(TypeArticle, "type_article"), nullable=False)
    article_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    denomination: Mapped[str] = mapped_column(String(200), nullable=False)

    quantite: Mapped[int] = mapped_column(Integer, nullable=False)
    prix_unitaire: Mapped[int] = mapped_column(Integer, nullable=False)

    commande: Mapped[Commande] = relationship("Commande", back_populates="lignes")


class CompteurCommande(BaseModele):
    """Dernier numéro attribué par (année, mois, sexe)."""

    __tablename__ = "compteur_commande"
    __table_args__ = (
        UniqueConstraint("annee", "mois", "sexe", name="uq_compteur_commande_annee_mois_sexe"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    annee: Mapped[int] = mapped_column(Integer, nullable=False)
    mois: Mapped[int] = mapped_column(Integer, nullable=False)
    sexe: Mapped[str] = mapped_column(String(1), nullable=False)
    dernier_numero: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


Index("ix_commande_cree_le", Commande.cree_le)
Index("ix_commande_point_de_vente", Commande.point_de_vente_id)
Index("ix_ligne_commande_commande", LigneCommande.commande_id)
