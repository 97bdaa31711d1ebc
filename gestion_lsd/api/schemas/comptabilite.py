from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from gestion_lsd.domaine.enums.types import TypeCompteComptable, TypeOperationComptable, TypeTresorerie


class CompteCreate(BaseModel):
    code_ohada: str = Field(..., min_length=1, max_length=20)
    denomination: str = Field(..., min_length=1, max_length=200)
    type_compte: TypeCompteComptable
    description: str | None = None


class CompteUpdate(BaseModel):
    denomination: str | None = Field(default=None, min_length=1, max_length=200)
    type_compte: TypeCompteComptable | None = None
    description: str | None = None


class CompteOut(BaseModel):
    id: UUID
    code_ohada: str
    denomination: str
    description: str | None
    type_compte: TypeCompteComptable
    actif: bool

    class Config:
        from_attributes = True


class TresorerieCreate(BaseModel):
    denomination: str = Field(..., min_length=1, max_length=200)
    type_tresorerie: TypeTresorerie
    numero: str | None = Field(default=None, max_length=60)
    solde_initial: int = 0


class TresorerieOut(BaseModel):
    id: UUID
    denomination: str
    numero: str | None
    type_tresorerie: TypeTresorerie
    solde: int
    actif: bool

    class Config:
        from_attributes = True


class OperationCreate(BaseModel):
    date_operation: date
    type_operation: TypeOperationComptable
    compte_id: UUID
    tresorerie_id: UUID
    montant: int = Field(..., gt=0)
    observation: str | None = None


class OperationOut(BaseModel):
    id: UUID
    date_operation: date
    type_operation: TypeOperationComptable
    montant: int
    observation: str | None
    compte_id: UUID
    tresorerie_id: UUID
    semaine_id: UUID
    actif: bool

    class Config:
        from_attributes = True


class SemaineOut(BaseModel):
    id: UUID
    annee: int
    code: str
    numero: int
    date_debut: date
    date_fin: date
    cloture: bool
    cloturee_le: datetime | None

    class Config:
        from_attributes = True


class StatutClotureOut(BaseModel):
    existe: bool
    cloture: bool
    peut_cloturer: bool
    raison: str
    jours_avant_auto_cloture: int | None = None

    class Config:
        from_attributes = True


class ResumeSemaineOut(BaseModel):
    annee: int
    code: str
    date_debut: date
    date_fin: date
    cloture: bool
    recettes: int
    depenses: int
    solde: int
    nombre_operations: int

    class Config:
        from_attributes = True


class ReponseClotures(BaseModel):
    annee: int
    semaines: list[str]


class MouvementGrandLivreOut(BaseModel):
    operation_id: UUID
    date_operation: date
    type_operation: TypeOperationComptable
    observation: str | None
    debit: int
    credit: int
    solde_cumule: int

    class Config:
        from_attributes = True


class CompteGrandLivreOut(BaseModel):
    compte_id: UUID
    code_ohada: str
    denomination: str
    type_compte: TypeCompteComptable
    mouvements: list[MouvementGrandLivreOut]
    total_debit: int
    total_credit: int
    solde: int

    class Config:
        from_attributes = True


class GrandLivreOut(BaseModel):
    debut: date
    fin: date
    comptes: list[CompteGrandLivreOut]
    total_debit: int
    total_credit: int
    solde: int
    nombre_operations: int

    class Config:
        from_attributes = True


class LigneBalanceOut(BaseModel):
    compte_id: UUID
    code_ohada: str
    denomination: str
    type_compte: TypeCompteComptable
    debit: int
    credit: int
    solde: int
    nombre_mouvements: int

    class Config:
        from_attributes = True


class BalanceOut(BaseModel):
    debut: date
    fin: date
    lignes: list[LigneBalanceOut]
    total_debit: int
    total_credit: int
    solde: int
    equilibree: bool
    ecart: int

    class Config:
        from_attributes = True


class ClasseBalanceOut(BaseModel):
    classe: str
    denomination: str
    lignes: list[LigneBalanceOut]
    debit: int
    credit: int
    solde: int

    class Config:
        from_attributes = True
