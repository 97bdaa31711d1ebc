from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import FamilleEmplacement, FonctionPersonnel, TypeOperationEmplacement
from gestion_lsd.domaine.services.emplacements import (
    DonneesInvalidesEmplacement,
    OperationEmplacementInvalide,
    Position,
    ServiceEmplacements,
    valider_horaires,
)
from gestion_lsd.domaine.services.personnel import ServicePersonnel
from tests._auth_helpers import creer_utilisateur
from tests._http_helpers import client_api, entetes_internes, entetes_jwt


def test_valider_horaires() -> None:
    h = valider_horaires({"lun": {"ouvert": True, "ouverture": "08:00", "fermeture": "20:00"}, "dim": {"ouvert": False}})
    assert h["lun"]["ouvert"] is True
    assert h["dim"] == {"ouvert": False, "ouverture": None, "fermeture": None}

    with pytest.raises(DonneesInvalidesEmplacement):
        valider_horaires({"lundi": {"ouvert": False}})
    with pytest.raises(DonneesInvalidesEmplacement):
        valider_horaires({"mar": {"ouvert": True, "ouverture": "21:00", "fermeture": "08:00"}})
    with pytest.raises(DonneesInvalidesEmplacement):
        valider_horaires({"mer": {"ouvert": True, "ouverture": "8h", "fermeture": "20:00"}})


@pytest.mark.asyncio
async def test_ouvrir_fermer_journalise(session_test: AsyncSession) -> None:
    service = ServiceEmplacements(session_test)
    stand = await service.creer(
        denomination="Stand Étoile Rouge",
        famille=FamilleEmplacement.STAND,
        position=Position(departement="Littoral", commune="Cotonou", quartier="Gbégamey"),
    )
    assert stand.est_ouvert is False
    assert stand.departement == "littoral"

    await service.ouvrir(stand.id)
    with pytest.raises(OperationEmplacementInvalide, match="déjà ouvert"):
        await service.ouvrir(stand.id)

    await service.fermer(stand.id)
    with pytest.raises(OperationEmplacementInvalide, match="déjà fermé"):
        await service.fermer(stand.id)

    types = [op.type_operation for op in await service.historique(stand.id)]
    assert sorted(t.value for t in types) == ["fermeture", "ouverture"]


@pytest.mark.asyncio
async def test_changer_vendeur_exige_une_vendeuse_active(session_test: AsyncSession) -> None:
    personnel = ServicePersonnel(session_test)
    awa = await personnel.creer(fonction=FonctionPersonnel.VENDEUSE, nom="Houénou", prenoms="Awa", telephone="66000001")
    rose = await personnel.creer(fonction=FonctionPersonnel.VENDEUSE, nom="Ahissou", prenoms="Rose", telephone="66000002")
    livreur = await personnel.creer(fonction=FonctionPersonnel.LIVREUR, nom="Kiki", telephone="66000003")

    service = ServiceEmplacements(session_test)
    pdv = await service.creer(denomination="PDV Ganhi", famille=FamilleEmplacement.POINT_DE_VENTE)

    await service.changer_vendeur(pdv.id, vendeuse_id=awa.id)
    pdv = await service.changer_vendeur(pdv.id, vendeuse_id=rose.id)
    assert pdv.vendeur_nom == "Ahissou Rose"

    with pytest.raises(OperationEmplacementInvalide):
        await service.changer_vendeur(pdv.id, vendeuse_id=livreur.id)

    changements = [
        op for op in await service.historique(pdv.id)
        if op.type_operation == TypeOperationEmplacement.CHANGEMENT_VENDEUR
    ]
    assert len(changements) == 2
    dernier = next(op for op in changements if op.details["nouveau_vendeur_id"] == str(rose.id))
    assert dernier.details["ancien_vendeur_nom"] == "Houénou Awa"


@pytest.mark.asyncio
async def test_deplacer_garde_l_ancienne_position(session_test: AsyncSession) -> None:
    service = ServiceEmplacements(session_test)
    stand = await service.creer(
        denomination="Stand mobile",
        famille=FamilleEmplacement.STAND,
        position=Position(departement="Littoral", commune="Cotonou", latitude=6.36, longitude=2.42),
    )

    stand = await service.deplacer(stand.id, position=Position(departement="Atlantique", commune="Abomey-Calavi"))
    assert stand.commune == "Abomey-Calavi"

    (op,) = await service.historique(stand.id)
    assert op.details["ancienne_position"]["commune"] == "Cotonou"
    assert op.details["nouvelle_position"]["departement"] == "atlantique"


@pytest.mark.asyncio
async def test_emplacement_desactive_ne_s_ouvre_pas(session_test: AsyncSession) -> None:
    service = ServiceEmplacements(session_test)
    entrepot = await service.creer(denomination="Entrepôt central", famille=FamilleEmplacement.ENTREPOT)
    await service.desactiver(entrepot.id)

    with pytest.raises(OperationEmplacementInvalide):
        await service.ouvrir(entrepot.id)
    assert await service.lister() == []


@pytest.mark.asyncio
async def test_api_emplacements_auteur_depuis_jwt(session_test: AsyncSession) -> None:
    superviseur, token = await creer_utilisateur(session_test, email="sup@example.com", roles=("superviseur",))

    async with client_api(session_test) as client:
        r = await client.post(
            "/api/interne/emplacements",
            headers=entetes_internes(),
            json={
                "denomination": "PDV Haie Vive",
                "famille": "point_de_vente",
                "horaires": {"sam": {"ouvert": True, "ouverture": "09:00", "fermeture": "23:00"}},
            },
        )
        assert r.status_code == 201, r.text
        emplacement_id = r.json()["id"]

        r = await client.post(f"/api/interne/emplacements/{emplacement_id}/ouvrir", headers=entetes_jwt(token))
        assert r.status_code == 200
        assert r.json()["est_ouvert"] is True

        r = await client.post(f"/api/interne/emplacements/{emplacement_id}/ouvrir", headers=entetes_internes())
        assert r.status_code == 409

        r = await client.get("/api/interne/emplacements/points-de-vente", headers=entetes_internes())
        assert [e["denomination"] for e in r.json()] == ["PDV Haie Vive"]

        r = await client.get(f"/api/interne/emplacements/{emplacement_id}/historique", headers=entetes_internes())
        assert r.status_code == 200
        assert r.json()[0]["auteur_id"] == str(superviseur.id)
