from __future__ import annotations

from uuid import UUID

import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session
from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.core.securite import decoder_token_acces
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.administration import codes_roles_utilisateur


def extraire_bearer(authorization: str | None) -> str | None:
    if authorization is None:
        return None
    prefix = "bearer "
    if authorization.lower().startswith(prefix):
        return authorization[len(prefix) :].strip()
    return None


async def fournir_utilisateur_courant(
    session: AsyncSession = Depends(fournir_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> User:
    token = extraire_bearer(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token manquant.")

    try:
        payload = decoder_token_acces(token, secret=parametres_application.jwt_secret)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token invalide.")

    try:
        user_id = UUID(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token invalide (sub).")

    res = await session.execute(select(User).where(User.id == user_id))
    user = res.scalar_one_or_none()
    if user is None or not user.actif:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Utilisateur inactif.")

    return user


async def fournir_roles_utilisateur(
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> list[str]:
    # relu en base : les rôles du token ne sont qu'informatifs
    return await codes_roles_utilisateur(session, user.id)


def verifier_roles_requis(*roles_requis: str):
    async def _dep(roles: list[str] = Depends(fournir_roles_utilisateur)) -> None:
        if not set(roles_requis).intersection(set(roles)):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accès interdit.")

    return _dep


async def fournir_utilisateur_optionnel(
    session: AsyncSession = Depends(fournir_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> User | None:
    """Utilisateur courant si un Bearer est fourni, sinon None (API interne)."""

    if extraire_bearer(authorization) is None:
        return None
    return await fournir_utilisateur_courant(session=session, authorization=authorization)
