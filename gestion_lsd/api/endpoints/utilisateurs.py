from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session
from gestion_lsd.api.dependances_auth import fournir_utilisateur_courant, verifier_roles_requis
from gestion_lsd.api.schemas.auth import UserCreation, UserLecture, UserMiseAJour
from gestion_lsd.core.securite import hasher_mot_de_passe
from gestion_lsd.domaine.enums.types import CodeRole
from gestion_lsd.domaine.modeles.auth import Role, User, UserRole
from gestion_lsd.domaine.services.administration import (
    RoleIntrouvable,
    ServiceAdministration,
    UtilisateurIntrouvable,
    codes_roles_utilisateur,
)


logger = logging.getLogger(__name__)

routeur_utilisateurs = APIRouter(
    prefix="/api/interne/utilisateurs",
    tags=["utilisateurs_interne"],
    dependencies=[Depends(verifier_roles_requis(CodeRole.ADMIN.value))],
)


async def _lecture(session: AsyncSession, user: User) -> UserLecture:
    return UserLecture(
        id=user.id,
        email=user.email,
        nom_affiche=user.nom_affiche,
        telephone=user.telephone,
        actif=user.actif,
        roles=await codes_roles_utilisateur(session, user.id),
    )


async def _attacher_roles(session: AsyncSession, user_id: UUID, codes_demandes: list[str]) -> None:
    if not codes_demandes:
        return

    roles_db = await session.execute(select(Role).where(Role.code.in_(codes_demandes)))
    roles = roles_db.scalars().all()
    codes = {r.code for r in roles}
    inconnus = [c for c in codes_demandes if c not in codes]
    if inconnus:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Rôles inconnus: {inconnus}")

    for r in roles:
        session.add(UserRole(user_id=user_id, role_id=r.id))


async def _obtenir_user(session: AsyncSession, user_id: UUID) -> User:
    user = (await session.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Utilisateur introuvable.")
    return user


@routeur_utilisateurs.get("", response_model=list[UserLecture])
async def lister_utilisateurs(session: AsyncSession = Depends(fournir_session)) -> list[UserLecture]:
    res = await session.execute(select(User).order_by(User.email.asc()))
    return [await _lecture(session, u) for u in res.scalars().all()]


@routeur_utilisateurs.post("", response_model=UserLecture, status_code=status.HTTP_201_CREATED)
async def creer_utilisateur(
    requete: UserCreation,
    session: AsyncSession = Depends(fournir_session),
) -> UserLecture:
    existe = await session.execute(select(User.id).where(User.email == requete.email))
    if existe.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email déjà utilisé.")

    user = User(
        email=requete.email,
        nom_affiche=requete.nom_affiche,
        telephone=requete.telephone,
        mot_de_passe_hash=hasher_mot_de_passe(requete.mot_de_passe),
        actif=True,
    )
    session.add(user)
    await session.flush()

    await _attacher_roles(session, user.id, requete.roles)

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.info("utilisateur_creer_conflit email=%s", requete.email)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email déjà utilisé.") from e

    return await _lecture(session, user)


@routeur_utilisateurs.patch("/{user_id}", response_model=UserLecture)
async def maj_utilisateur(
    user_id: UUID,
    requete: UserMiseAJour,
    session: AsyncSession = Depends(fournir_session),
) -> UserLecture:
    user = await _obtenir_user(session, user_id)

    if requete.nom_affiche is not None:
        user.nom_affiche = requete.nom_affiche
    if requete.telephone is not None:
        user.telephone = requete.telephone
    if requete.actif is not None:
        user.actif = requete.actif

    if requete.roles is not None:
        await session.execute(delete(UserRole).where(UserRole.user_id == user_id))
        await _attacher_roles(session, user_id, requete.roles)

    await session.commit()
    return await _lecture(session, user)


@routeur_utilisateurs.delete("/{user_id}", status_code=status.HTTP_200_OK)
async def desactiver_utilisateur(
    user_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> dict[str, str]:
    user = await _obtenir_user(session, user_id)

    # désactivation seulement : l’historique (audit, commandes) garde la référence
    user.actif = False
    await session.commit()
    return {"statut": "ok"}


@routeur_utilisateurs.post("/{user_id}/promotion-admin", response_model=UserLecture)
async def promouvoir_admin(
    user_id: UUID,
    admin: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> UserLecture:
    try:
        await ServiceAdministration(session).promouvoir_admin(user_id, par_user_id=admin.id)
    except UtilisateurIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except RoleIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return await _lecture(session, await _obtenir_user(session, user_id))
