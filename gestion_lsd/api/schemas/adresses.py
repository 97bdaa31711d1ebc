from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class AdresseCreate(BaseModel):
    nom: str | None = Field(default=None, max_length=200)
    departement: str = Field(..., min_length=1, max_length=50)
    commune: str = Field(..., min_length=1, max_length=120)
    arrondissement: str | None = Field(default=None, max_length=120)
    quartier: str | None = Field(default=None, max_length=120)
    latitude: float | None = None
    longitude: float | None = None
    actif: bool = True


class AdresseUpdate(BaseModel):
    nom: str | None = Field(default=None, max_length=200)
    departement: str | None = Field(default=None, min_length=1, max_length=50)
    commune: str | None = Field(default=None, min_length=1, max_length=120)
    arrondissement: str | None = Field(default=None, max_length=120)
    quartier: str | None = Field(default=None, max_length=120)
    latitude: float | None = None
    longitude: float | None = None


class AdresseOut(BaseModel):
    id: UUID
    nom: str
    departement: str
    commune: str
    arrondissement: str
    quartier: str
    latitude: float
    longitude: float
    actif: bool
    cree_le: datetime

    class Config:
        from_attributes = True


class RequeteStatutZone(BaseModel):
    actif: bool
    departement: str | None = None
    commune: str | None = None
    arrondissement: str | None = None
    quartier: str | None = None


class ReponseStatutZone(BaseModel):
    modifiees: int


class SuggestionOut(BaseModel):
    valeur: str
    departement: str
    commune: str | None
    arrondissement: str | None
    nombre: int

    class Config:
        from_attributes = True


class StatistiquesStatutOut(BaseModel):
    total: int
    actives: int
    desactivees: int

    class Config:
        from_attributes = True


class TarifCreate(BaseModel):
    livreur_id: UUID
    tarif: int = Field(..., ge=0)


class TarifOut(BaseModel):
    id: UUID
    adresse_id: UUID
    livreur_id: UUID
    livreur_nom: str
    tarif: int

    class Config:
        from_attributes = True
