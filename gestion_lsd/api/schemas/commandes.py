from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from gestion_lsd.domaine.enums.types import StatutCommande, TypeArticle, TypeCommande


class LigneCommandeIn(BaseModel):
    type_article: TypeArticle
    article_id: UUID
    quantite: int = Field(..., gt=0)


class PaiementIn(BaseModel):
    montant_especes: int = Field(default=0, ge=0)
    montant_momo: int = Field(default=0, ge=0)
    frais_livraison: int = Field(default=0, ge=0)
    reduction: int = Field(default=0, ge=0)


class RequeteCommande(BaseModel):
    type_commande: TypeCommande
    sexe: str = Field(..., min_length=1, max_length=1)
    client_nom: str = Field(..., min_length=1, max_length=200)
    client_telephone: str = Field(..., pattern=r"^\d{1,14}$")
    point_de_vente_id: UUID
    lignes: list[LigneCommandeIn] = Field(..., min_length=1)
    paiement: PaiementIn = Field(default_factory=PaiementIn)

    adresse_livraison_id: UUID | None = None
    personne_a_livrer: str | None = Field(default=None, max_length=200)
    telephone_a_livrer: str | None = Field(default=None, pattern=r"^\d{1,14}$")
    livraison_prevue_le: datetime | None = None
    indication_adresse: str | None = None


class LigneCommandeOut(BaseModel):
    type_article: TypeArticle
    article_id: UUID
    denomination: str
    quantite: int
    prix_unitaire: int

    class Config:
        from_attributes = True


class CommandeOut(BaseModel):
    id: UUID
    code: str
    type_commande: TypeCommande
    statut: StatutCommande
    client_nom: str
    client_telephone: str
    point_de_vente_id: UUID
    point_de_vente_nom: str
    vendeur_id: UUID | None
    vendeur_nom: str | None

    adresse_livraison_id: UUID | None
    personne_a_livrer: str | None
    telephone_a_livrer: str | None
    livraison_prevue_le: datetime | None
    indication_adresse: str | None

    sous_total: int
    frais_livraison: int
    reduction: int
    total: int
    montant_especes: int
    montant_momo: int
    montant_recu: int
    monnaie_rendue: int
    dette: int

    actif: bool
    cree_le: datetime
    lignes: list[LigneCommandeOut]

    class Config:
        from_attributes = True


class RequeteStatutCommande(BaseModel):
    statut: StatutCommande


class TendanceOut(BaseModel):
    direction: str
    pourcentage: float
    total_veille: int

    class Config:
        from_attributes = True


class StatistiquesJourOut(BaseModel):
    jour: date
    nombre_commandes: int
    total_ventes: int
    sur_place: dict
    a_livrer: dict
    articles: list[dict]
    vendeurs: list[dict]
    encaissements: dict
    tendance: TendanceOut | None

    class Config:
        from_attributes = True
