from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.schemas.personnel import MembrePersonnelCreate, MembrePersonnelOut, MembrePersonnelUpdate
from gestion_lsd.domaine.enums.types import FonctionPersonnel
from gestion_lsd.domaine.services.personnel import (
    ConflitPersonnel,
    DonneesInvalidesPersonnel,
    ErreurPersonnel,
    MembrePersonnelIntrouvable,
    ServicePersonnel,
)


logger = logging.getLogger(__name__)

routeur_personnel_interne = APIRouter(
    prefix="/personnel",
    tags=["personnel_interne"],
    dependencies=[Depends(verifier_acces_interne)],
)


def _http(e: ErreurPersonnel) -> HTTPException:
    if isinstance(e, MembrePersonnelIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ConflitPersonnel):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DonneesInvalidesPersonnel):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


@routeur_personnel_interne.get("", response_model=list[MembrePersonnelOut])
async def lister_personnel(
    fonction: FonctionPersonnel | None = Query(default=None),
    inclure_inactifs: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[MembrePersonnelOut]:
    return await ServicePersonnel(session).lister(fonction=fonction, inclure_inactifs=inclure_inactifs)


@routeur_personnel_interne.post("", response_model=MembrePersonnelOut, status_code=status.HTTP_201_CREATED)
async def creer_membre(
    body: MembrePersonnelCreate,
    session: AsyncSession = Depends(fournir_session),
) -> MembrePersonnelOut:
    try:
        return await ServicePersonnel(session).creer(**body.model_dump())
    except ErreurPersonnel as e:
        raise _http(e) from e
    except IntegrityError as e:
        # course entre deux créations simultanées : la contrainte d’unicité tranche
        await session.rollback()
        logger.info("personnel_creer_conflit fonction=%s telephone=%s", body.fonction.value, body.telephone)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Conflit: ce membre du personnel existe déjà.",
        ) from e


@routeur_personnel_interne.get("/{membre_id}", response_model=MembrePersonnelOut)
async def obtenir_membre(membre_id: UUID, session: AsyncSession = Depends(fournir_session)) -> MembrePersonnelOut:
    try:
        return await ServicePersonnel(session).obtenir(membre_id)
    except ErreurPersonnel as e:
        raise _http(e) from e


@routeur_personnel_interne.patch("/{membre_id}", response_model=MembrePersonnelOut)
async def maj_membre(
    membre_id: UUID,
    body: MembrePersonnelUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> MembrePersonnelOut:
    try:
        return await ServicePersonnel(session).mettre_a_jour(membre_id, **body.model_dump(exclude_unset=True))
    except ErreurPersonnel as e:
        raise _http(e) from e


@routeur_personnel_interne.delete("/{membre_id}", response_model=MembrePersonnelOut)
async def desactiver_membre(membre_id: UUID, session: AsyncSession = Depends(fournir_session)) -> MembrePersonnelOut:
    try:
        return await ServicePersonnel(session).desactiver(membre_id)
    except ErreurPersonnel as e:
        raise _http(e) from e


@routeur_personnel_interne.post("/{membre_id}/reactiver", response_model=MembrePersonnelOut)
async def reactiver_membre(membre_id: UUID, session: AsyncSession = Depends(fournir_session)) -> MembrePersonnelOut:
    try:
        return await ServicePersonnel(session).reactiver(membre_id)
    except ErreurPersonnel as e:
        raise _http(e) from e
