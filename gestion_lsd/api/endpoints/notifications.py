from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.dependances_auth import fournir_utilisateur_courant, verifier_roles_requis
from gestion_lsd.api.schemas.presence import NotificationCreation, NotificationLecture
from gestion_lsd.domaine.enums.types import CodeRole
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.notifications import (
    DonneesInvalidesNotification,
    ErreurNotification,
    NotificationIntrouvable,
    ServiceNotifications,
)


routeur_notifications = APIRouter(prefix="/api/notifications", tags=["notifications"])

routeur_notifications_interne = APIRouter(
    prefix="/notifications",
    tags=["notifications_interne"],
    dependencies=[Depends(verifier_acces_interne), Depends(verifier_roles_requis(CodeRole.ADMIN.value))],
)


def _http(e: ErreurNotification) -> HTTPException:
    if isinstance(e, NotificationIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, DonneesInvalidesNotification):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


@routeur_notifications.get("", response_model=list[NotificationLecture])
async def mes_notifications(
    non_lues: bool = Query(default=False),
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> list[NotificationLecture]:
    return await ServiceNotifications(session).lister(user.id, non_lues_seulement=non_lues)


@routeur_notifications.post("/{notification_id}/lue", response_model=NotificationLecture)
async def marquer_lue(
    notification_id: UUID,
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> NotificationLecture:
    try:
        return await ServiceNotifications(session).marquer_lue(notification_id, user_id=user.id)
    except ErreurNotification as e:
        raise _http(e) from e


@routeur_notifications_interne.post("", response_model=NotificationLecture, status_code=status.HTTP_201_CREATED)
async def envoyer_notification(
    requete: NotificationCreation,
    session: AsyncSession = Depends(fournir_session),
) -> NotificationLecture:
    try:
        return await ServiceNotifications(session).envoyer(
            user_id=requete.user_id,
            message=requete.message,
            type_notification=requete.type_notification,
        )
    except ErreurNotification as e:
        raise _http(e) from e
