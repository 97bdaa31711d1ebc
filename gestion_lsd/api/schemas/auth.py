from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class RequeteLogin(BaseModel):
    email: EmailStr
    mot_de_passe: str = Field(min_length=8)


class ReponseLogin(BaseModel):
    token_acces: str
    type_token: str = "bearer"


class UserLecture(BaseModel):
    id: UUID
    email: EmailStr
    nom_affiche: str
    telephone: str | None = None
    actif: bool
    roles: list[str]


class UserCreation(BaseModel):
    email: EmailStr
    nom_affiche: str = Field(min_length=1, max_length=200)
    telephone: str | None = Field(default=None, max_length=20)
    mot_de_passe: str = Field(min_length=8)
    roles: list[str] = Field(default_factory=list)


class UserMiseAJour(BaseModel):
    nom_affiche: str | None = Field(default=None, min_length=1, max_length=200)
    telephone: str | None = Field(default=None, max_length=20)
    actif: bool | None = None
    roles: list[str] | None = None
