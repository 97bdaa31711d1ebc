from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session
from gestion_lsd.api.dependances_auth import fournir_utilisateur_courant
from gestion_lsd.api.schemas.auth import ReponseLogin, RequeteLogin, UserLecture
from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.core.securite import creer_token_acces, verifier_mot_de_passe
from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.administration import codes_roles_utilisateur
from gestion_lsd.domaine.services.presence import ServicePresence


logger = logging.getLogger(__name__)

routeur_auth = APIRouter(prefix="/auth", tags=["auth"])


@routeur_auth.get("/me", response_model=UserLecture)
async def me(
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> UserLecture:
    """Utilisateur courant, sans exposer le hash."""

    return UserLecture(
        id=user.id,
        email=user.email,
        nom_affiche=user.nom_affiche,
        telephone=user.telephone,
        actif=user.actif,
        roles=await codes_roles_utilisateur(session, user.id),
    )


@routeur_auth.post("/login", response_model=ReponseLogin)
async def login(requete: RequeteLogin, session: AsyncSession = Depends(fournir_session)) -> ReponseLogin:
    res = await session.execute(select(User).where(User.email == requete.email))
    user = res.scalar_one_or_none()
    if user is None or not user.actif:
        logger.info("login_refuse email=%s raison=inconnu_ou_inactif", requete.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Identifiants invalides.")

    if not verifier_mot_de_passe(requete.mot_de_passe, user.mot_de_passe_hash):
        logger.info("login_refuse email=%s raison=mot_de_passe", requete.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Identifiants invalides.")

    roles = await codes_roles_utilisateur(session, user.id)

    user.dernier_login_le = maintenant_utc()
    await session.commit()

    token = creer_token_acces(
        secret=parametres_application.jwt_secret,
        sujet=str(user.id),
        duree_minutes=parametres_application.jwt_duree_minutes,
        roles=roles,
    )

    logger.info("login_ok user_id=%s", user.id)
    return ReponseLogin(token_acces=token)


@routeur_auth.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> dict[str, str]:
    """Déconnexion : la présence est effacée (l’utilisateur apparaît offline).

    Le JWT reste valide jusqu’à expiration : il n’y a pas de liste de révocation.
    """

    await ServicePresence(session).nettoyer_presence(user.id)
    return {"statut": "ok"}
