"""Amorçage du socle : rôles applicatifs + administrateur initial.

Usage:
    python -m scripts.seed_socle

Variables :
    ADMIN_EMAIL (défaut admin@lsd.bj)
    ADMIN_MOT_DE_PASSE (défaut ChangeMe123!)

Idempotent : relançable sans créer de doublon.
"""

from __future__ import annotations

import asyncio
import logging
import os

from sqlalchemy import select

from gestion_lsd.core.base_donnees import fournir_session_async
from gestion_lsd.core.logging_config import configurer_logging
from gestion_lsd.core.securite import hasher_mot_de_passe
from gestion_lsd.domaine.enums.types import CodeRole
from gestion_lsd.domaine.modeles.auth import Role, User, UserRole


logger = logging.getLogger(__name__)

ROLES = [
    (CodeRole.ADMIN, "Administrateur"),
    (CodeRole.SUPERVISEUR, "Superviseur"),
    (CodeRole.VENDEUR, "Vendeuse"),
    (CodeRole.CUISINIER, "Cuisinier"),
    (CodeRole.LIVREUR, "Livreur"),
]


async def seed() -> None:
    email = os.getenv("ADMIN_EMAIL", "admin@lsd.bj").strip().lower()
    mot_de_passe = os.getenv("ADMIN_MOT_DE_PASSE", "ChangeMe123!")

    async for session in fournir_session_async():
        for code, libelle in ROLES:
            res = await session.execute(select(Role).where(Role.code == code.value))
            if res.scalar_one_or_none() is None:
                session.add(Role(code=code.value, libelle=libelle, actif=True))
                logger.info("role_cree code=%s", code.value)

        await session.commit()

        res = await session.execute(select(User).where(User.email == email))
        user = res.scalar_one_or_none()
        if user is None:
            user = User(
                email=email,
                nom_affiche="Administrateur",
                mot_de_passe_hash=hasher_mot_de_passe(mot_de_passe),
                actif=True,
            )
            session.add(user)
            await session.flush()
            logger.info("admin_cree email=%s", email)

        role_admin = (await session.execute(select(Role).where(Role.code == CodeRole.ADMIN.value))).scalar_one()

        res = await session.execute(
            select(UserRole).where(UserRole.user_id == user.id).where(UserRole.role_id == role_admin.id)
        )
        if res.scalar_one_or_none() is None:
            session.add(UserRole(user_id=user.id, role_id=role_admin.id))

        await session.commit()


if __name__ == "__main__":
    configurer_logging()
    asyncio.run(seed())
