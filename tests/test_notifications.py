from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import CodeRole, TypeNotification
from gestion_lsd.domaine.modeles.presence import Notification
from gestion_lsd.domaine.services.notifications import (
    DonneesInvalidesNotification,
    NotificationIntrouvable,
    ServiceNotifications,
)
from tests._auth_helpers import creer_utilisateur
from tests._http_helpers import client_api, entetes_internes, entetes_jwt


@pytest.mark.asyncio
async def test_envoyer_lister_marquer_lue(session_test: AsyncSession) -> None:
    user, _ = await creer_utilisateur(session_test, email="n1@example.com")
    service = ServiceNotifications(session_test)

    n = await service.envoyer(user_id=user.id, message="  Nouvelle commande  ", type_notification=TypeNotification.SUCCES)
    assert n.message == "Nouvelle commande"
    assert n.lue is False

    assert len(await service.lister(user.id, non_lues_seulement=True)) == 1

    await service.marquer_lue(n.id, user_id=user.id)
    assert await service.lister(user.id, non_lues_seulement=True) == []
    assert len(await service.lister(user.id)) == 1


@pytest.mark.asyncio
async def test_message_vide_refuse(session_test: AsyncSession) -> None:
    user, _ = await creer_utilisateur(session_test, email="n2@example.com")

    with pytest.raises(DonneesInvalidesNotification):
        await ServiceNotifications(session_test).envoyer(user_id=user.id, message="   ")


@pytest.mark.asyncio
async def test_notification_d_un_autre_utilisateur_introuvable(session_test: AsyncSession) -> None:
    a, _ = await creer_utilisateur(session_test, email="n3@example.com")
    b, _ = await creer_utilisateur(session_test, email="n4@example.com")
    service = ServiceNotifications(session_test)
    n = await service.envoyer(user_id=a.id, message="pour a")

    with pytest.raises(NotificationIntrouvable):
        await service.marquer_lue(n.id, user_id=b.id)


@pytest.mark.asyncio
async def test_nettoyage_apres_48h(session_test: AsyncSession) -> None:
    user, _ = await creer_utilisateur(session_test, email="n5@example.com")
    service = ServiceNotifications(session_test)
    vieille = await service.envoyer(user_id=user.id, message="vieille")
    await service.envoyer(user_id=user.id, message="récente")

    maintenant = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    await session_test.execute(
        update(Notification).where(Notification.id == vieille.id).values(cree_le=maintenant - timedelta(hours=49))
    )
    await session_test.execute(
        update(Notification).where(Notification.id != vieille.id).values(cree_le=maintenant - timedelta(hours=1))
    )
    await session_test.commit()

    assert await service.nettoyer_anciennes(maintenant=maintenant) == 1
    assert [n.message for n in await service.lister(user.id)] == ["récente"]


@pytest.mark.asyncio
async def test_api_envoi_interne_puis_lecture(session_test: AsyncSession) -> None:
    user, token = await creer_utilisateur(session_test, email="n6@example.com")
    _, token_admin = await creer_utilisateur(session_test, email="n6-admin@example.com", roles=(CodeRole.ADMIN.value,))
    corps = {"user_id": str(user.id), "message": "Livraison terminée", "type_notification": "info"}

    async with client_api(session_test) as client:
        r = await client.post("/api/interne/notifications", headers=entetes_internes(), json=corps)
        assert r.status_code == 401

        r = await client.post("/api/interne/notifications", headers=entetes_jwt(token), json=corps)
        assert r.status_code == 403

        r = await client.post("/api/interne/notifications", headers=entetes_jwt(token_admin), json=corps)
        assert r.status_code == 201, r.text
        notification_id = r.json()["id"]

        r = await client.get("/api/notifications", params={"non_lues": True}, headers=entetes_jwt(token, interne=False))
        assert r.status_code == 200
        assert [n["id"] for n in r.json()] == [notification_id]

        r = await client.post(f"/api/notifications/{notification_id}/lue", headers=entetes_jwt(token, interne=False))
        assert r.status_code == 200
        assert r.json()["lue"] is True
