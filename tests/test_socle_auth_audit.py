from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.middleware_audit import MiddlewareAudit
from gestion_lsd.core.securite import hasher_mot_de_passe
from gestion_lsd.domaine.enums.types import CodeRole
from gestion_lsd.domaine.modeles.audit import AuditLog
from gestion_lsd.domaine.modeles.presence import Presence
from gestion_lsd.domaine.services.administration import ServiceAdministration, UtilisateurIntrouvable
from tests._auth_helpers import creer_utilisateur
from tests._http_helpers import app_avec_session_test, client_api, entetes_jwt


@pytest.mark.asyncio
async def test_login_me_logout(session_test: AsyncSession) -> None:
    user, _ = await creer_utilisateur(
        session_test,
        email="vendeur@example.com",
        nom_affiche="Vendeur",
        roles=(CodeRole.VENDEUR.value,),
        mot_de_passe_hash=hasher_mot_de_passe("Password123!"),
    )

    async with client_api(session_test) as client:
        r = await client.post("/auth/login", json={"email": "vendeur@example.com", "mot_de_passe": "mauvais-mdp"})
        assert r.status_code == 401

        r = await client.post("/auth/login", json={"email": "vendeur@example.com", "mot_de_passe": "Password123!"})
        assert r.status_code == 200, r.text
        token = r.json()["token_acces"]

        r = await client.get("/auth/me", headers=entetes_jwt(token, interne=False))
        assert r.status_code == 200
        assert r.json()["roles"] == ["vendeur"]
        assert "mot_de_passe_hash" not in r.json()

        r = await client.post("/api/presence/heartbeat", headers=entetes_jwt(token, interne=False), json={"statut": "online"})
        assert r.status_code == 200

        r = await client.post("/auth/logout", headers=entetes_jwt(token, interne=False))
        assert r.status_code == 200

    presences = (await session_test.execute(select(Presence).where(Presence.user_id == user.id))).scalars().all()
    assert presences == []


@pytest.mark.asyncio
async def test_utilisateur_inactif_refuse(session_test: AsyncSession) -> None:
    _, token = await creer_utilisateur(session_test, email="parti@example.com", actif=False)

    async with client_api(session_test) as client:
        r = await client.get("/auth/me", headers=entetes_jwt(token, interne=False))

    assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_invalide(session_test: AsyncSession) -> None:
    async with client_api(session_test) as client:
        r = await client.get("/auth/me", headers={"Authorization": "Bearer pas-un-jwt"})
        assert r.status_code == 401

        r = await client.get("/auth/me")
        assert r.status_code == 401


@pytest.mark.asyncio
async def test_gestion_utilisateurs_reservee_admin(session_test: AsyncSession) -> None:
    _, token_admin = await creer_utilisateur(session_test, email="admin@example.com", roles=(CodeRole.ADMIN.value,))
    _, token_livreur = await creer_utilisateur(session_test, email="livreur@example.com", roles=(CodeRole.LIVREUR.value,))

    async with client_api(session_test) as client:
        r = await client.get("/api/interne/utilisateurs", headers=entetes_jwt(token_livreur, interne=False))
        assert r.status_code == 403

        r = await client.post(
            "/api/interne/utilisateurs",
            headers=entetes_jwt(token_admin, interne=False),
            json={
                "email": "cuisinier@example.com",
                "nom_affiche": "Cuisinier",
                "mot_de_passe": "Password123!",
                "roles": ["cuisinier"],
            },
        )
        assert r.status_code == 201, r.text
        cuisinier = r.json()
        assert cuisinier["roles"] == ["cuisinier"]

        r = await client.post(
            "/api/interne/utilisateurs",
            headers=entetes_jwt(token_admin, interne=False),
            json={"email": "autre@example.com", "nom_affiche": "X", "mot_de_passe": "Password123!", "roles": ["pape"]},
        )
        assert r.status_code == 400

        r = await client.post(
            f"/api/interne/utilisateurs/{cuisinier['id']}/promotion-admin",
            headers=entetes_jwt(token_admin, interne=False),
        )
        assert r.status_code == 200
        assert r.json()["roles"] == ["admin", "cuisinier"]

        r = await client.delete(
            f"/api/interne/utilisateurs/{cuisinier['id']}",
            headers=entetes_jwt(token_admin, interne=False),
        )
        assert r.status_code == 200

    promotions = (await session_test.execute(select(AuditLog).where(AuditLog.action == "promotion_admin"))).scalars().all()
    assert [p.ressource_id for p in promotions] == [cuisinier["id"]]


@pytest.mark.asyncio
async def test_promouvoir_admin_idempotent_et_trace(session_test: AsyncSession) -> None:
    admin, token_admin = await creer_utilisateur(session_test, email="chef@example.com", roles=(CodeRole.ADMIN.value,))
    vendeur, _ = await creer_utilisateur(session_test, email="vente@example.com", roles=(CodeRole.VENDEUR.value,))

    service = ServiceAdministration(session_test)
    assert await service.est_admin(admin.id)
    assert not await service.est_admin(vendeur.id)

    with pytest.raises(UtilisateurIntrouvable):
        await service.promouvoir_admin(uuid4(), par_user_id=admin.id)

    async with client_api(session_test) as client:
        for _ in range(2):
            r = await client.post(
                f"/api/interne/utilisateurs/{vendeur.id}/promotion-admin",
                headers=entetes_jwt(token_admin, interne=False),
            )
            assert r.status_code == 200, r.text
            assert r.json()["roles"] == ["admin", "vendeur"]

        r = await client.post(
            f"/api/interne/utilisateurs/{uuid4()}/promotion-admin",
            headers=entetes_jwt(token_admin, interne=False),
        )
        assert r.status_code == 404

    assert await service.est_admin(vendeur.id)
    lignes = (
        (await session_test.execute(select(AuditLog).where(AuditLog.action == "promotion_admin"))).scalars().all()
    )
    assert len(lignes) == 1
    assert (lignes[0].ressource, lignes[0].ressource_id, lignes[0].user_id) == ("user", str(vendeur.id), admin.id)
    assert lignes[0].donnees == {"email": "vente@example.com"}


@pytest.mark.asyncio
async def test_middleware_audit_masque_le_mot_de_passe(session_test: AsyncSession) -> None:
    user, token = await creer_utilisateur(session_test, email="audit@example.com")

    app = app_avec_session_test(session_test)
    app.add_middleware(
        MiddlewareAudit,
        session_factory=lambda: AsyncSession(bind=session_test.bind, expire_on_commit=False),
    )

    async with client_api(session_test, app=app) as client:
        r = await client.post("/auth/login", json={"email": "inconnu@example.com", "mot_de_passe": "Secret12345"})
        assert r.status_code == 401

        r = await client.get("/auth/me", headers=entetes_jwt(token, interne=False))
        assert r.status_code == 200

        r = await client.get("/health")
        assert r.status_code == 200

    logs = (
        await session_test.execute(
            select(AuditLog).where(AuditLog.action == "http_request").order_by(AuditLog.cree_le.asc())
        )
    ).scalars().all()

    assert [(l.methode_http, l.chemin, l.statut_http) for l in logs] == [
        ("POST", "/auth/login", 401),
        ("GET", "/auth/me", 200),
    ]
    assert logs[0].donnees == {"email": "inconnu@example.com", "mot_de_passe": "***"}
    assert logs[0].user_id is None
    assert logs[1].user_id == user.id
