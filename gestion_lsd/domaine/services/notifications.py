from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.enums.types import TypeNotification
from gestion_lsd.domaine.modeles.auth import Role, User, UserRole
from gestion_lsd.domaine.modeles.personnel import MembrePersonnel
from gestion_lsd.domaine.modeles.presence import Notification


logger = logging.getLogger(__name__)


class ErreurNotification(Exception):
    """Erreur générique notifications."""


class DonneesInvalidesNotification(ErreurNotification):
    pass


class NotificationIntrouvable(ErreurNotification):
    pass


async def notifier_utilisateur(
    session: AsyncSession,
    *,
    user_id: UUID,
    message: str,
    type_notification: TypeNotification = TypeNotification.INFO,
) -> Notification:
    """Notification émise par une opération métier (commit laissé à l’appelant)."""

    notification = Notification(user_id=user_id, message=message, type_notification=type_notification, lue=False)
    session.add(notification)
    return notification


async def notifier_role(
    session: AsyncSession,
    *,
    code_role: str,
    message: str,
    type_notification: TypeNotification = TypeNotification.INFO,
) -> int:
    """Une notification par utilisateur actif portant le rôle. Retourne le nombre envoyé."""

    res = await session.execute(
        select(User.id)
        .join(UserRole, UserRole.user_id == User.id)
        .join(Role, Role.id == UserRole.role_id)
        .where(Role.code == code_role)
        .where(User.actif.is_(True))
    )
    destinataires = [r[0] for r in res.all()]
    for user_id in destinataires:
        await notifier_utilisateur(session, user_id=user_id, message=message, type_notification=type_notification)
    return len(destinataires)


async def compte_du_membre(session: AsyncSession, membre: MembrePersonnel) -> User | None:
    """Compte utilisateur d’un membre du personnel : même email, sinon même téléphone."""

    criteres = []
    if membre.email:
        criteres.append(func.lower(User.email) == membre.email.strip().lower())
    if membre.telephone:
        criteres.append(User.telephone == membre.telephone)
    if not criteres:
        return None

    res = await session.execute(select(User).where(User.actif.is_(True)).where(or_(*criteres)))
    comptes = list(res.scalars().all())
    if membre.email:
        for compte in comptes:
            if compte.email.lower() == membre.email.strip().lower():
                return compte
    return comptes[0] if comptes else None


class ServiceNotifications:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def envoyer(
        self,
        *,
        user_id: UUID,
        message: str,
        type_notification: TypeNotification = TypeNotification.INFO,
    ) -> Notification:
        if not message or not message.strip():
            raise DonneesInvalidesNotification("Le message est obligatoire.")

        destinataire = await self._session.get(User, user_id)
        if destinataire is None or not destinataire.actif:
            raise NotificationIntrouvable("Destinataire introuvable.")

        notification = Notification(
            user_id=user_id,
            message=message.strip(),
            type_notification=type_notification,
            lue=False,
        )
        self._session.add(notification)
        await self._session.commit()
        await self._session.refresh(notification)
        return notification

    async def lister(self, user_id: UUID, *, non_lues_seulement: bool = False) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.cree_le.desc())
        )
        if non_lues_seulement:
            stmt = stmt.where(Notification.lue.is_(False))
        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def marquer_lue(self, notification_id: UUID, *, user_id: UUID) -> Notification:
        notification = await self._session.get(Notification, notification_id)
        # une notification d’un autre utilisateur est traitée comme inexistante
        if notification is None or notification.user_id != user_id:
            raise NotificationIntrouvable("Notification introuvable.")

        notification.lue = True
        await self._session.commit()
        return notification

    async def nettoyer_anciennes(self, *, maintenant: datetime | None = None) -> int:
        """Supprime les notifications plus vieilles que la rétention (48 h par défaut)."""

        maintenant = maintenant or maintenant_utc()
        limite = maintenant - timedelta(hours=parametres_application.retention_notifications_heures)

        res = await self._session.execute(
            delete(Notification)
            .where(Notification.cree_le < limite)
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()

        nombre = int(res.rowcount or 0)
        logger.info("notifications_nettoyees nombre=%s limite=%s", nombre, limite.isoformat())
        return nombre
