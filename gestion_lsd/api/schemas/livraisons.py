from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from gestion_lsd.domaine.enums.types import PrioriteLivraison, StatutLivraison


class LivraisonCreate(BaseModel):
    commande_code: str
    priorite: PrioriteLivraison = PrioriteLivraison.NORMALE
    notes: str | None = None


class LivraisonUpdate(BaseModel):
    notes: str | None = None
    priorite: PrioriteLivraison | None = None
    adresse_id: UUID | None = None


class RequeteAssignation(BaseModel):
    livreur_id: UUID


class RequeteAnnulation(BaseModel):
    motif: str | None = None


class RequeteStatutLivraison(BaseModel):
    statut: StatutLivraison
    livreur_id: UUID | None = None
    motif: str | None = None


class LivraisonOut(BaseModel):
    id: UUID
    commande_code: str
    statut: StatutLivraison
    priorite: PrioriteLivraison
    adresse_id: UUID | None
    client_nom: str | None
    client_telephone: str | None
    livreur_id: UUID | None
    livreur_nom: str | None
    colis_recupere: bool
    notes: str | None
    motif_annulation: str | None
    cree_le: datetime
    assignee_le: datetime | None
    recuperee_le: datetime | None
    demarree_le: datetime | None
    livree_le: datetime | None
    annulee_le: datetime | None

    class Config:
        from_attributes = True


class DelaisOut(BaseModel):
    moyen_minutes: float | None
    median_minutes: float | None
    min_minutes: float | None
    max_minutes: float | None

    class Config:
        from_attributes = True


class StatistiquesLivraisonsOut(BaseModel):
    total: int
    livrees: int
    annulees: int
    en_cours: int
    taux_livraison: float
    delais: DelaisOut
    par_commune: dict[str, int]

    class Config:
        from_attributes = True
