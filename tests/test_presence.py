from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import CodeRole, StatutPresence
from gestion_lsd.domaine.services.presence import ServicePresence, est_reellement_actif
from tests._auth_helpers import creer_utilisateur
from tests._http_helpers import client_api, entetes_jwt


MAINTENANT = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_reellement_actif_exige_online_et_heartbeat_recent() -> None:
    recent = MAINTENANT - timedelta(seconds=30)
    ancien = MAINTENANT - timedelta(seconds=300)

    assert est_reellement_actif(StatutPresence.ONLINE, recent, maintenant=MAINTENANT, seuil_secondes=90)
    assert not est_reellement_actif(StatutPresence.ONLINE, ancien, maintenant=MAINTENANT, seuil_secondes=90)
    assert not est_reellement_actif(StatutPresence.AWAY, recent, maintenant=MAINTENANT, seuil_secondes=90)
    assert not est_reellement_actif(StatutPresence.ONLINE, None, maintenant=MAINTENANT, seuil_secondes=90)


@pytest.mark.parametrize(
    ("age_secondes", "actif"),
    [(0, True), (89, True), (90, False), (91, False)],
)
def test_seuil_de_90_secondes(age_secondes: int, actif: bool) -> None:
    vu_le = MAINTENANT - timedelta(seconds=age_secondes)
    assert est_reellement_actif(StatutPresence.ONLINE, vu_le, maintenant=MAINTENANT, seuil_secondes=90) is actif


@pytest.mark.asyncio
async def test_heartbeat_puis_metriques(session_test: AsyncSession) -> None:
    admin, _ = await creer_utilisateur(session_test, email="admin@example.com", roles=(CodeRole.ADMIN.value,))
    vendeur, _ = await creer_utilisateur(session_test, email="vendeur@example.com", roles=(CodeRole.VENDEUR.value,))
    livreur, _ = await creer_utilisateur(session_test, email="livreur@example.com", roles=(CodeRole.LIVREUR.value,))

    service = ServicePresence(session_test, seuil_secondes=90)
    await service.heartbeat(admin, statut=StatutPresence.ONLINE, maintenant=MAINTENANT - timedelta(seconds=10))
    await service.heartbeat(vendeur, statut=StatutPresence.AWAY, maintenant=MAINTENANT - timedelta(seconds=10))

    m = await service.metriques(maintenant=MAINTENANT)
    assert (m.total, m.en_ligne, m.absents, m.hors_ligne, m.reellement_actifs) == (3, 1, 1, 1, 1)

    ligne = await service.obtenir_presence(admin.id, maintenant=MAINTENANT)
    assert ligne.role == "admin"
    assert ligne.actif_reellement is True

    # sans heartbeat : offline, mais le rôle est connu partout
    lignes = {l.user_id: l for l in await service.lister_utilisateurs_avec_presence(maintenant=MAINTENANT)}
    assert (lignes[livreur.id].statut, lignes[livreur.id].role) == (StatutPresence.OFFLINE, "livreur")
    assert (await service.obtenir_presence(livreur.id, maintenant=MAINTENANT)).role == "livreur"


@pytest.mark.asyncio
async def test_online_perime_n_est_pas_reellement_actif(session_test: AsyncSession) -> None:
    user, _ = await creer_utilisateur(session_test, email="vieux@example.com")
    service = ServicePresence(session_test, seuil_secondes=90)
    await service.heartbeat(user, maintenant=MAINTENANT - timedelta(minutes=10))

    ligne = await service.obtenir_presence(user.id, maintenant=MAINTENANT)
    assert ligne.statut == StatutPresence.ONLINE
    assert ligne.actif_reellement is False


@pytest.mark.asyncio
async def test_expirer_presences(session_test: AsyncSession) -> None:
    a, _ = await creer_utilisateur(session_test, email="a@example.com")
    b, _ = await creer_utilisateur(session_test, email="b@example.com")
    service = ServicePresence(session_test, seuil_secondes=90)
    await service.heartbeat(a, maintenant=MAINTENANT - timedelta(minutes=5))
    await service.heartbeat(b, maintenant=MAINTENANT - timedelta(seconds=5))

    assert await service.expirer_presences(maintenant=MAINTENANT) == 1

    assert (await service.obtenir_presence(a.id, maintenant=MAINTENANT)).statut == StatutPresence.OFFLINE
    assert (await service.obtenir_presence(b.id, maintenant=MAINTENANT)).statut == StatutPresence.ONLINE


@pytest.mark.asyncio
async def test_expirer_presences_a_la_limite_du_seuil(session_test: AsyncSession) -> None:
    a_89, _ = await creer_utilisateur(session_test, email="s89@example.com")
    a_90, _ = await creer_utilisateur(session_test, email="s90@example.com")
    absent_90, _ = await creer_utilisateur(session_test, email="away90@example.com")
    service = ServicePresence(session_test, seuil_secondes=90)
    await service.heartbeat(a_89, maintenant=MAINTENANT - timedelta(seconds=89))
    await service.heartbeat(a_90, maintenant=MAINTENANT - timedelta(seconds=90))
    await service.heartbeat(absent_90, statut=StatutPresence.AWAY, maintenant=MAINTENANT - timedelta(seconds=90))

    assert await service.expirer_presences(maintenant=MAINTENANT) == 2

    lignes = {l.user_id: l for l in await service.lister_utilisateurs_avec_presence(maintenant=MAINTENANT)}
    assert lignes[a_89.id].statut == StatutPresence.ONLINE
    assert lignes[a_89.id].actif_reellement is True
    assert lignes[a_90.id].statut == StatutPresence.OFFLINE
    assert lignes[absent_90.id].statut == StatutPresence.OFFLINE


@pytest.mark.asyncio
async def test_nettoyer_presence_repasse_offline(session_test: AsyncSession) -> None:
    user, _ = await creer_utilisateur(session_test, email="c@example.com")
    service = ServicePresence(session_test)
    await service.heartbeat(user)

    await service.nettoyer_presence(user.id)

    ligne = await service.obtenir_presence(user.id)
    assert ligne.statut == StatutPresence.OFFLINE
    assert ligne.vu_le is None


@pytest.mark.asyncio
async def test_api_heartbeat_et_liste(session_test: AsyncSession) -> None:
    _, token = await creer_utilisateur(session_test, email="cuisine@example.com", roles=(CodeRole.CUISINIER.value,))

    async with client_api(session_test) as client:
        r = await client.post("/api/presence/heartbeat", headers=entetes_jwt(token, interne=False), json={})
        assert r.status_code == 200, r.text
        assert r.json()["statut"] == "online"
        assert r.json()["actif_reellement"] is True

        r = await client.get("/api/presence/utilisateurs", headers=entetes_jwt(token, interne=False))
        assert r.status_code == 200
        assert [l["email"] for l in r.json()] == ["cuisine@example.com"]

        r = await client.get("/api/presence/metriques")
        assert r.status_code == 401
