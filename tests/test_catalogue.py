from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import TypeArticle
from gestion_lsd.domaine.modeles.catalogue import ElementMenuCompose
from gestion_lsd.domaine.services.catalogue import (
    ConflitCatalogue,
    DonneesInvalidesCatalogue,
    ElementCatalogueIntrouvable,
    ElementDemande,
    ServiceCatalogue,
)
from tests._http_helpers import client_api, entetes_internes


@pytest.mark.asyncio
async def test_menu_avec_ingredients(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)
    riz = await service.creer_ingredient(nom="Riz", quantite=250, cal_100=130)
    poulet = await service.creer_ingredient(nom="Poulet", quantite=150)

    menu = await service.creer_menu(denomination="Riz au poulet", prix=2500, ingredient_ids=[riz.id, poulet.id, riz.id])

    assert menu.prix == 2500
    assert sorted(mi.ingredient.nom for mi in menu.ingredients) == ["Poulet", "Riz"]

    menu = await service.mettre_a_jour_menu(menu.id, ingredient_ids=[poulet.id])
    assert [mi.ingredient.nom for mi in menu.ingredients] == ["Poulet"]


@pytest.mark.asyncio
async def test_menu_prix_par_defaut_et_doublon_insensible_casse(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)
    menu = await service.creer_menu(denomination="Atassi")
    assert menu.prix == 2000

    with pytest.raises(ConflitCatalogue):
        await service.creer_menu(denomination="ATASSI")


@pytest.mark.asyncio
async def test_menu_ingredient_inconnu_refuse(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)

    with pytest.raises(DonneesInvalidesCatalogue, match="Ingrédients inconnus"):
        await service.creer_menu(denomination="Pâte rouge", ingredient_ids=[uuid.uuid4()])

    assert await service.lister_menus(inclure_inactifs=True) == []


@pytest.mark.asyncio
async def test_prix_negatif_refuse(session_test: AsyncSession) -> None:
    with pytest.raises(DonneesInvalidesCatalogue):
        await ServiceCatalogue(session_test).creer_boisson(denomination="Bissap", prix=-1)


@pytest.mark.asyncio
async def test_menu_desactive_boisson_supprimee(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)
    menu = await service.creer_menu(denomination="Amiwo")
    boisson = await service.creer_boisson(denomination="Sodabi")
    assert boisson.prix == 1000

    await service.desactiver_menu(menu.id)
    assert await service.lister_menus() == []
    assert len(await service.lister_menus(inclure_inactifs=True)) == 1

    await service.supprimer_boisson(boisson.id)
    with pytest.raises(ElementCatalogueIntrouvable):
        await service.obtenir_boisson(boisson.id)


@pytest.mark.asyncio
async def test_api_catalogue(session_test: AsyncSession) -> None:
    async with client_api(session_test) as client:
        r = await client.post("/api/interne/catalogue/ingredients", headers=entetes_internes(), json={"nom": "Tomate"})
        assert r.status_code == 201, r.text
        tomate_id = r.json()["id"]

        r = await client.post(
            "/api/interne/catalogue/menus",
            headers=entetes_internes(),
            json={"denomination": "Spaghetti sauce tomate", "prix": 1500, "ingredient_ids": [tomate_id]},
        )
        assert r.status_code == 201, r.text
        assert r.json()["ingredients"][0]["ingredient"]["nom"] == "Tomate"

        r = await client.post(
            "/api/interne/catalogue/menus",
            headers=entetes_internes(),
            json={"denomination": "spaghetti sauce tomate"},
        )
        assert r.status_code == 409

        r = await client.post("/api/interne/catalogue/boissons", headers=entetes_internes(), json={"denomination": "Youki"})
        assert r.status_code == 201
        boisson_id = r.json()["id"]

        r = await client.delete(f"/api/interne/catalogue/boissons/{boisson_id}", headers=entetes_internes())
        assert r.status_code == 204

        r = await client.get(f"/api/interne/catalogue/boissons/{boisson_id}", headers=entetes_internes())
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_menu_compose_contenu_et_quantites(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)
    menu = await service.creer_menu(denomination="Riz gras")
    boisson = await service.creer_boisson(denomination="Bissap", prix=500)

    formule = await service.creer_menu_compose(
        denomination="Formule midi",
        prix=2500,
        contenu=[
            ElementDemande(TypeArticle.MENU, menu.id),
            ElementDemande(TypeArticle.BOISSON, boisson.id, 1),
            ElementDemande(TypeArticle.BOISSON, boisson.id, 1),
        ],
    )
    assert [(e.denomination, e.quantite) for e in formule.contenu] == [("Bissap", 2), ("Riz gras", 1)]
    assert formule.contenu[1].type_article == TypeArticle.MENU

    formule = await service.ajouter_element(formule.id, type_article=TypeArticle.MENU, article_id=menu.id, quantite=2)
    assert {e.denomination: e.quantite for e in formule.contenu} == {"Bissap": 2, "Riz gras": 3}

    formule = await service.modifier_quantite_element(
        formule.id, type_article=TypeArticle.BOISSON, article_id=boisson.id, quantite=0
    )
    assert [e.denomination for e in formule.contenu] == ["Riz gras"]

    # l’élément retiré est supprimé, pas seulement détaché
    restants = (await session_test.execute(select(ElementMenuCompose))).scalars().all()
    assert len(restants) == 1

    with pytest.raises(ElementCatalogueIntrouvable):
        await service.modifier_quantite_element(
            formule.id, type_article=TypeArticle.BOISSON, article_id=boisson.id, quantite=3
        )

    formule = await service.mettre_a_jour_menu_compose(
        formule.id, contenu=[ElementDemande(TypeArticle.BOISSON, boisson.id, 4)]
    )
    assert [(e.denomination, e.quantite) for e in formule.contenu] == [("Bissap", 4)]


@pytest.mark.asyncio
async def test_menu_compose_refuse_article_inconnu_ou_inactif(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)
    menu = await service.creer_menu(denomination="Amiwo")
    await service.desactiver_menu(menu.id)

    with pytest.raises(DonneesInvalidesCatalogue):
        await service.creer_menu_compose(denomination="F1", contenu=[ElementDemande(TypeArticle.MENU, menu.id)])
    with pytest.raises(DonneesInvalidesCatalogue):
        await service.creer_menu_compose(denomination="F2", contenu=[ElementDemande(TypeArticle.BOISSON, uuid.uuid4())])
    with pytest.raises(DonneesInvalidesCatalogue):
        await service.creer_menu_compose(denomination="F3", contenu=[ElementDemande(TypeArticle.BOISSON, menu.id, 0)])

    await service.creer_menu_compose(denomination="Formule soir")
    with pytest.raises(ConflitCatalogue):
        await service.creer_menu_compose(denomination="formule SOIR")

    formule = (await service.lister_menus_composes())[0]
    await service.desactiver_menu_compose(formule.id)
    assert await service.lister_menus_composes() == []
    assert len(await service.lister_menus_composes(inclure_inactifs=True)) == 1


@pytest.mark.asyncio
async def test_supplements_gratuits_doublons_et_total(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)
    piment = await service.creer_supplement(denomination="Piment", groupe="Sauces", prix="gratuit")
    fromage = await service.creer_supplement(denomination=" Fromage ", groupe="Garnitures", prix=300)

    assert piment.prix == 0 and piment.est_gratuit
    assert fromage.denomination == "Fromage" and not fromage.est_gratuit

    with pytest.raises(ConflitCatalogue):
        await service.creer_supplement(denomination="PIMENT", groupe="sauces")
    # même dénomination, autre groupe : autorisé
    await service.creer_supplement(denomination="Piment", groupe="Garnitures", prix=100)

    with pytest.raises(DonneesInvalidesCatalogue):
        await service.creer_supplement(denomination="Oeuf", groupe="Garnitures", prix="beaucoup")

    assert [s.denomination for s in await service.lister_supplements(groupe="garnitures")] == ["Fromage", "Piment"]

    total = await service.calculer_total_supplements([fromage.id, piment.id, fromage.id, uuid.uuid4()])
    assert total == 600
    assert await service.calculer_total_supplements([]) == 0

    await service.desactiver_supplement(fromage.id)
    assert [s.denomination for s in await service.lister_supplements(groupe="Garnitures")] == ["Piment"]
    await service.reactiver_supplement(fromage.id)

    await service.supprimer_supplement(piment.id)
    with pytest.raises(ElementCatalogueIntrouvable):
        await service.obtenir_supplement(piment.id)


@pytest.mark.asyncio
async def test_supplements_en_lot(session_test: AsyncSession) -> None:
    service = ServiceCatalogue(session_test)
    await service.creer_supplement(denomination="Oignons", groupe="Garnitures")

    rapport = await service.creer_supplements_lot(
        [
            {"denomination": "Oignons", "groupe": "garnitures"},
            {"denomination": "Mayonnaise", "groupe": "Sauces", "prix": 150},
            {"denomination": "mayonnaise", "groupe": "SAUCES"},
            {"denomination": "Ketchup", "groupe": "Sauces", "prix": -5},
        ]
    )

    assert [s.denomination for s in rapport.crees] == ["Mayonnaise"]
    assert rapport.doublons == ["Oignons (garnitures)", "mayonnaise (SAUCES)"]
    assert len(rapport.erreurs) == 1 and rapport.erreurs[0].startswith("Ketchup (Sauces)")
    assert len(await service.lister_supplements()) == 2


@pytest.mark.asyncio
async def test_api_menus_composes_et_supplements(session_test: AsyncSession) -> None:
    async with client_api(session_test) as client:
        r = await client.post("/api/interne/catalogue/boissons", headers=entetes_internes(), json={"denomination": "Coca"})
        boisson_id = r.json()["id"]

        r = await client.post(
            "/api/interne/catalogue/menus-composes",
            headers=entetes_internes(),
            json={
                "denomination": "Formule étudiant",
                "prix": 1800,
                "contenu": [{"type_article": "boisson", "article_id": boisson_id, "quantite": 2}],
            },
        )
        assert r.status_code == 201, r.text
        formule_id = r.json()["id"]
        assert r.json()["contenu"][0]["denomination"] == "Coca"

        r = await client.put(
            f"/api/interne/catalogue/menus-composes/{formule_id}/elements",
            headers=entetes_internes(),
            json={"type_article": "boisson", "article_id": boisson_id, "quantite": 0},
        )
        assert r.status_code == 200
        assert r.json()["contenu"] == []

        r = await client.post(
            "/api/interne/catalogue/menus-composes",
            headers=entetes_internes(),
            json={"denomination": "Formule X", "contenu": [{"type_article": "menu", "article_id": str(uuid.uuid4())}]},
        )
        assert r.status_code == 400

        r = await client.post(
            "/api/interne/catalogue/supplements",
            headers=entetes_internes(),
            json={"denomination": "Piment", "groupe": "Sauces", "prix": "gratuit"},
        )
        assert r.status_code == 201, r.text
        assert r.json()["est_gratuit"] is True

        r = await client.post(
            "/api/interne/catalogue/supplements",
            headers=entetes_internes(),
            json={"denomination": "piment", "groupe": "sauces"},
        )
        assert r.status_code == 409

        r = await client.post(
            "/api/interne/catalogue/supplements/lot",
            headers=entetes_internes(),
            json=[{"denomination": "Avocat", "groupe": "Garnitures", "prix": 400}],
        )
        assert r.status_code == 200
        avocat_id = r.json()["crees"][0]["id"]

        r = await client.post(
            "/api/interne/catalogue/supplements/total",
            headers=entetes_internes(),
            json={"supplement_ids": [avocat_id, avocat_id]},
        )
        assert r.json() == {"total": 800}
