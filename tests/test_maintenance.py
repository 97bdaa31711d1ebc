from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import StatutPresence
from gestion_lsd.domaine.modeles.presence import Notification
from gestion_lsd.domaine.services.maintenance import executer_maintenance
from gestion_lsd.domaine.services.notifications import ServiceNotifications
from gestion_lsd.domaine.services.presence import ServicePresence
from tests._auth_helpers import creer_utilisateur


MAINTENANT = datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_maintenance_purge_expire_et_cloture(session_test: AsyncSession) -> None:
    user, _ = await creer_utilisateur(session_test, email="cron@example.com")

    notifications = ServiceNotifications(session_test)
    vieille = await notifications.envoyer(user_id=user.id, message="ancienne")
    recente = await notifications.envoyer(user_id=user.id, message="récente")
    await session_test.execute(
        update(Notification).where(Notification.id == vieille.id).values(cree_le=MAINTENANT - timedelta(days=3))
    )
    await session_test.execute(
        update(Notification).where(Notification.id == recente.id).values(cree_le=MAINTENANT - timedelta(hours=2))
    )
    await session_test.commit()

    await ServicePresence(session_test).heartbeat(user, maintenant=MAINTENANT - timedelta(minutes=10))

    rapport = await executer_maintenance(session_test, maintenant=MAINTENANT)

    assert rapport.notifications_supprimees == 1
    assert rapport.presences_expirees == 1
    assert len(rapport.semaines_cloturees[2024]) == 53
    assert rapport.semaines_cloturees[2025] == ["S01", "S02", "S03", "S04", "S05", "S06", "S07"]
    assert rapport.nombre_semaines_cloturees == 60

    presence = await ServicePresence(session_test).obtenir_presence(user.id, maintenant=MAINTENANT)
    assert presence.statut == StatutPresence.OFFLINE

    # idempotent
    rapport = await executer_maintenance(session_test, maintenant=MAINTENANT)
    assert (rapport.notifications_supprimees, rapport.presences_expirees, rapport.nombre_semaines_cloturees) == (0, 0, 0)
