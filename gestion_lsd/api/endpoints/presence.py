from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session
from gestion_lsd.api.dependances_auth import fournir_utilisateur_courant
from gestion_lsd.api.schemas.presence import MetriquesPresenceLecture, PresenceLecture, RequeteHeartbeat
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.presence import ServicePresence, UtilisateurPresenceIntrouvable


routeur_presence = APIRouter(
    prefix="/api/presence",
    tags=["presence"],
    dependencies=[Depends(fournir_utilisateur_courant)],
)


@routeur_presence.post("/heartbeat", response_model=PresenceLecture)
async def heartbeat(
    requete: RequeteHeartbeat,
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> PresenceLecture:
    """Appelé périodiquement par le client (onglet actif, inactif, ...)."""

    service = ServicePresence(session)
    await service.heartbeat(user, statut=requete.statut)
    return await service.obtenir_presence(user.id)


@routeur_presence.delete("/moi", status_code=status.HTTP_200_OK)
async def quitter(
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> dict[str, str]:
    await ServicePresence(session).nettoyer_presence(user.id)
    return {"statut": "ok"}


@routeur_presence.get("/utilisateurs", response_model=list[PresenceLecture])
async def lister_presences(session: AsyncSession = Depends(fournir_session)) -> list[PresenceLecture]:
    return await ServicePresence(session).lister_utilisateurs_avec_presence()


@routeur_presence.get("/metriques", response_model=MetriquesPresenceLecture)
async def metriques(session: AsyncSession = Depends(fournir_session)) -> MetriquesPresenceLecture:
    return await ServicePresence(session).metriques()


@routeur_presence.get("/utilisateurs/{user_id}", response_model=PresenceLecture)
async def obtenir_presence(user_id: UUID, session: AsyncSession = Depends(fournir_session)) -> PresenceLecture:
    try:
        return await ServicePresence(session).obtenir_presence(user_id)
    except UtilisateurPresenceIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
