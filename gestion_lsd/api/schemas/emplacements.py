from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from gestion_lsd.domaine.enums.types import FamilleEmplacement, TypeOperationEmplacement


class CreneauHoraire(BaseModel):
    ouvert: bool = False
    ouverture: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    fermeture: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")


class PositionIn(BaseModel):
    departement: str | None = None
    commune: str | None = None
    arrondissement: str | None = None
    quartier: str | None = None
    latitude: float = 0.0
    longitude: float = 0.0


class EmplacementCreate(BaseModel):
    denomination: str = Field(..., min_length=1, max_length=200)
    famille: FamilleEmplacement
    sous_type: str | None = Field(default=None, max_length=120)
    theme: str | None = Field(default=None, max_length=200)
    theme_description: str | None = None
    position: PositionIn | None = None
    horaires: dict[str, CreneauHoraire] | None = None


class EmplacementUpdate(BaseModel):
    denomination: str | None = Field(default=None, min_length=1, max_length=200)
    sous_type: str | None = Field(default=None, max_length=120)
    theme: str | None = Field(default=None, max_length=200)
    theme_description: str | None = None
    horaires: dict[str, CreneauHoraire] | None = None


class EmplacementOut(BaseModel):
    id: UUID
    denomination: str
    famille: FamilleEmplacement
    sous_type: str | None
    theme: str | None
    theme_description: str | None
    departement: str | None
    commune: str | None
    arrondissement: str | None
    quartier: str | None
    latitude: float
    longitude: float
    vendeur_id: UUID | None
    vendeur_nom: str | None
    horaires: dict
    est_ouvert: bool
    actif: bool

    class Config:
        from_attributes = True


class RequeteChangementVendeur(BaseModel):
    vendeuse_id: UUID


class OperationEmplacementOut(BaseModel):
    id: UUID
    emplacement_id: UUID
    type_operation: TypeOperationEmplacement
    details: dict
    effectuee_le: datetime
    auteur_id: UUID | None

    class Config:
        from_attributes = True
