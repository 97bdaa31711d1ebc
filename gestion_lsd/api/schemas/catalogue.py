from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from gestion_lsd.domaine.enums.types import TypeArticle


class IngredientCreate(BaseModel):
    nom: str = Field(..., min_length=1, max_length=200)
    quantite: float = Field(default=0.0, ge=0)
    unite_nom: str = Field(default="gramme", max_length=50)
    unite_symbole: str = Field(default="g", max_length=10)
    cal_100: float | None = Field(default=None, ge=0)
    kj_100: float | None = Field(default=None, ge=0)


class IngredientOut(BaseModel):
    id: UUID
    nom: str
    quantite: float
    unite_nom: str
    unite_symbole: str
    cal_100: float | None
    kj_100: float | None
    actif: bool

    class Config:
        from_attributes = True


class MenuIngredientOut(BaseModel):
    ingredient: IngredientOut

    class Config:
        from_attributes = True


class MenuCreate(BaseModel):
    denomination: str = Field(..., min_length=1, max_length=200)
    prix: int = Field(default=2000, ge=0)
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=500)
    ingredient_ids: list[UUID] = Field(default_factory=list)


class MenuUpdate(BaseModel):
    denomination: str | None = Field(default=None, min_length=1, max_length=200)
    prix: int | None = Field(default=None, ge=0)
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=500)
    ingredient_ids: list[UUID] | None = None
    actif: bool | None = None


class MenuOut(BaseModel):
    id: UUID
    denomination: str
    prix: int
    description: str | None
    image_url: str | None
    actif: bool
    ingredients: list[MenuIngredientOut]

    class Config:
        from_attributes = True


class BoissonCreate(BaseModel):
    denomination: str = Field(..., min_length=1, max_length=200)
    prix: int = Field(default=1000, ge=0)
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=500)


class BoissonUpdate(BaseModel):
    denomination: str | None = Field(default=None, min_length=1, max_length=200)
    prix: int | None = Field(default=None, ge=0)
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=500)
    actif: bool | None = None


class BoissonOut(BaseModel):
    id: UUID
    denomination: str
    prix: int
    description: str | None
    image_url: str | None
    actif: bool

    class Config:
        from_attributes = True


class ElementMenuComposeIn(BaseModel):
    type_article: TypeArticle
    article_id: UUID
    quantite: int = Field(default=1, ge=1)


class ElementMenuComposeOut(BaseModel):
    id: UUID
    type_article: TypeArticle
    article_id: UUID
    denomination: str
    quantite: int

    class Config:
        from_attributes = True


class MenuComposeCreate(BaseModel):
    denomination: str = Field(..., min_length=1, max_length=200)
    prix: int = Field(default=0, ge=0)
    description: str | None = None
    contenu: list[ElementMenuComposeIn] = Field(default_factory=list)


class MenuComposeUpdate(BaseModel):
    denomination: str | None = Field(default=None, min_length=1, max_length=200)
    prix: int | None = Field(default=None, ge=0)
    description: str | None = None
    contenu: list[ElementMenuComposeIn] | None = None
    actif: bool | None = None


class QuantiteElementIn(BaseModel):
    type_article: TypeArticle
    article_id: UUID
    quantite: int


class MenuComposeOut(BaseModel):
    id: UUID
    denomination: str
    prix: int
    description: str | None
    actif: bool
    contenu: list[ElementMenuComposeOut]

    class Config:
        from_attributes = True


class SupplementCreate(BaseModel):
    denomination: str = Field(..., min_length=1, max_length=200)
    groupe: str = Field(..., min_length=1, max_length=100)
    # entier >= 0 ou "gratuit"
    prix: int | str = 0
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=500)


class SupplementUpdate(BaseModel):
    denomination: str | None = Field(default=None, min_length=1, max_length=200)
    groupe: str | None = Field(default=None, min_length=1, max_length=100)
    prix: int | str | None = None
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=500)
    actif: bool | None = None


class SupplementOut(BaseModel):
    id: UUID
    denomination: str
    groupe: str
    prix: int
    description: str | None
    image_url: str | None
    actif: bool
    est_gratuit: bool

    class Config:
        from_attributes = True


class RapportLotSupplementsOut(BaseModel):
    crees: list[SupplementOut]
    doublons: list[str]
    erreurs: list[str]

    class Config:
        from_attributes = True


class TotalSupplementsIn(BaseModel):
    supplement_ids: list[UUID] = Field(default_factory=list)


class TotalSupplementsOut(BaseModel):
    total: int
