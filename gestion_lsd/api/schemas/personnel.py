from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from gestion_lsd.domaine.enums.types import FonctionPersonnel


class MembrePersonnelCreate(BaseModel):
    fonction: FonctionPersonnel
    nom: str = Field(..., min_length=1, max_length=120)
    prenoms: str = Field(default="", max_length=200)
    telephone: str = Field(..., min_length=8, max_length=20)
    email: EmailStr | None = None
    zones: list[str] = Field(default_factory=list)


class MembrePersonnelUpdate(BaseModel):
    nom: str | None = Field(default=None, min_length=1, max_length=120)
    prenoms: str | None = Field(default=None, max_length=200)
    telephone: str | None = Field(default=None, min_length=8, max_length=20)
    email: EmailStr | None = None
    zones: list[str] | None = None


class MembrePersonnelOut(BaseModel):
    id: UUID
    identifiant: str
    fonction: FonctionPersonnel
    nom: str
    prenoms: str
    telephone: str
    email: str | None
    zones: list[str]
    actif: bool
    cree_le: datetime

    class Config:
        from_attributes = True
