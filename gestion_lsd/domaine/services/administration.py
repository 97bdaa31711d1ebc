from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.enums.types import CodeRole
from gestion_lsd.domaine.modeles.audit import AuditLog
from gestion_lsd.domaine.modeles.auth import Role, User, UserRole


logger = logging.getLogger(__name__)


class ErreurAdministration(Exception):
    """Erreur générique administration."""


class UtilisateurIntrouvable(ErreurAdministration):
    pass


class RoleIntrouvable(ErreurAdministration):
    pass


async def codes_roles_utilisateur(session: AsyncSession, user_id: UUID) -> list[str]:
    res = await session.execute(
        select(Role.code).join(UserRole, UserRole.role_id == Role.id).where(UserRole.user_id == user_id)
    )
    return sorted(r[0] for r in res.all())


async def journaliser_action(
    session: AsyncSession,
    *,
    action: str,
    ressource: str,
    ressource_id: str | None = None,
    user_id: UUID | None = None,
    donnees: dict | None = None,
) -> None:
    """Ajoute une ligne d’audit métier (commit laissé à l’appelant)."""

    session.add(
        AuditLog(
            user_id=user_id,
            cree_le=maintenant_utc(),
            action=action,
            ressource=ressource,
            ressource_id=ressource_id,
            donnees=donnees,
        )
    )


class ServiceAdministration:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def est_admin(self, user_id: UUID) -> bool:
        return CodeRole.ADMIN.value in await codes_roles_utilisateur(self._session, user_id)

    async def promouvoir_admin(self, user_id: UUID, *, par_user_id: UUID | None = None) -> list[str]:
        """Ajoute le rôle admin à un utilisateur (idempotent) et trace l’action."""

        user = await self._session.get(User, user_id)
        if user is None or not user.actif:
            raise UtilisateurIntrouvable("Utilisateur introuvable.")

        role_admin = (
            await self._session.execute(select(Role).where(Role.code == CodeRole.ADMIN.value))
        ).scalar_one_or_none()
        if role_admin is None:
            raise RoleIntrouvable("Rôle admin absent : lancer scripts/seed_socle.py.")

        if not await self.est_admin(user_id):
            self._session.add(UserRole(user_id=user_id, role_id=role_admin.id))
            await journaliser_action(
                self._session,
                action="promotion_admin",
                ressource="user",
                ressource_id=str(user_id),
                user_id=par_user_id,
                donnees={"email": user.email},
            )
            await self._session.commit()
            logger.info("admin_promu user_id=%s par=%s", user_id, par_user_id)

        return await codes_roles_utilisateur(self._session, user_id)
