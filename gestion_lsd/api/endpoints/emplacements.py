from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.dependances_auth import fournir_utilisateur_optionnel
from gestion_lsd.api.schemas.emplacements import (
    CreneauHoraire,
    EmplacementCreate,
    EmplacementOut,
    EmplacementUpdate,
    OperationEmplacementOut,
    PositionIn,
    RequeteChangementVendeur,
)
from gestion_lsd.domaine.enums.types import FamilleEmplacement
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.emplacements import (
    DonneesInvalidesEmplacement,
    EmplacementIntrouvable,
    ErreurEmplacement,
    OperationEmplacementInvalide,
    Position,
    ServiceEmplacements,
)


logger = logging.getLogger(__name__)

routeur_emplacements_interne = APIRouter(
    prefix="/emplacements",
    tags=["emplacements_interne"],
    dependencies=[Depends(verifier_acces_interne)],
)


def _http(e: ErreurEmplacement) -> HTTPException:
    if isinstance(e, EmplacementIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, OperationEmplacementInvalide):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DonneesInvalidesEmplacement):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


def _horaires(horaires: dict[str, CreneauHoraire] | None) -> dict | None:
    if horaires is None:
        return None
    return {jour: creneau.model_dump() for jour, creneau in horaires.items()}


def _position(position: PositionIn | None) -> Position | None:
    if position is None:
        return None
    return Position(**position.model_dump())


@routeur_emplacements_interne.get("", response_model=list[EmplacementOut])
async def lister_emplacements(
    famille: FamilleEmplacement | None = Query(default=None),
    actif: bool | None = Query(default=True),
    q: str | None = Query(default=None, min_length=1),
    session: AsyncSession = Depends(fournir_session),
) -> list[EmplacementOut]:
    return await ServiceEmplacements(session).lister(famille=famille, actif=actif, q=q)


@routeur_emplacements_interne.get("/points-de-vente", response_model=list[EmplacementOut])
async def lister_points_de_vente(session: AsyncSession = Depends(fournir_session)) -> list[EmplacementOut]:
    return await ServiceEmplacements(session).lister_points_de_vente()


@routeur_emplacements_interne.post("", response_model=EmplacementOut, status_code=status.HTTP_201_CREATED)
async def creer_emplacement(
    body: EmplacementCreate,
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).creer(
            denomination=body.denomination,
            famille=body.famille,
            sous_type=body.sous_type,
            theme=body.theme,
            theme_description=body.theme_description,
            position=_position(body.position),
            horaires=_horaires(body.horaires),
        )
    except ErreurEmplacement as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        logger.info("emplacement_creer_conflit denomination=%s", body.denomination)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Conflit: un emplacement avec cette dénomination existe déjà.",
        ) from e


@routeur_emplacements_interne.get("/{emplacement_id}", response_model=EmplacementOut)
async def obtenir_emplacement(emplacement_id: UUID, session: AsyncSession = Depends(fournir_session)) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).obtenir(emplacement_id)
    except ErreurEmplacement as e:
        raise _http(e) from e


@routeur_emplacements_interne.patch("/{emplacement_id}", response_model=EmplacementOut)
async def maj_emplacement(
    emplacement_id: UUID,
    body: EmplacementUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).mettre_a_jour(
            emplacement_id,
            denomination=body.denomination,
            sous_type=body.sous_type,
            theme=body.theme,
            theme_description=body.theme_description,
            horaires=_horaires(body.horaires),
        )
    except ErreurEmplacement as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        logger.info("emplacement_maj_conflit emplacement_id=%s denomination=%s", emplacement_id, body.denomination)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Conflit: un emplacement avec cette dénomination existe déjà.",
        ) from e


@routeur_emplacements_interne.delete("/{emplacement_id}", response_model=EmplacementOut)
async def desactiver_emplacement(
    emplacement_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).desactiver(emplacement_id)
    except ErreurEmplacement as e:
        raise _http(e) from e


@routeur_emplacements_interne.post("/{emplacement_id}/reactiver", response_model=EmplacementOut)
async def reactiver_emplacement(
    emplacement_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).reactiver(emplacement_id)
    except ErreurEmplacement as e:
        raise _http(e) from e


@routeur_emplacements_interne.post("/{emplacement_id}/ouvrir", response_model=EmplacementOut)
async def ouvrir(
    emplacement_id: UUID,
    user: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).ouvrir(emplacement_id, auteur_id=user.id if user else None)
    except ErreurEmplacement as e:
        raise _http(e) from e


@routeur_emplacements_interne.post("/{emplacement_id}/fermer", response_model=EmplacementOut)
async def fermer(
    emplacement_id: UUID,
    user: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).fermer(emplacement_id, auteur_id=user.id if user else None)
    except ErreurEmplacement as e:
        raise _http(e) from e


@routeur_emplacements_interne.post("/{emplacement_id}/vendeur", response_model=EmplacementOut)
async def changer_vendeur(
    emplacement_id: UUID,
    body: RequeteChangementVendeur,
    user: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).changer_vendeur(
            emplacement_id,
            vendeuse_id=body.vendeuse_id,
            auteur_id=user.id if user else None,
        )
    except ErreurEmplacement as e:
        raise _http(e) from e


@routeur_emplacements_interne.post("/{emplacement_id}/deplacer", response_model=EmplacementOut)
async def deplacer(
    emplacement_id: UUID,
    body: PositionIn,
    user: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> EmplacementOut:
    try:
        return await ServiceEmplacements(session).deplacer(
            emplacement_id,
            position=_position(body),
            auteur_id=user.id if user else None,
        )
    except ErreurEmplacement as e:
        raise _http(e) from e


@routeur_emplacements_interne.get("/{emplacement_id}/historique", response_model=list[OperationEmplacementOut])
async def historique(
    emplacement_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> list[OperationEmplacementOut]:
    try:
        return await ServiceEmplacements(session).historique(emplacement_id)
    except ErreurEmplacement as e:
        raise _http(e) from e
