from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import (
    CodeRole,
    TypeCompteComptable,
    TypeNotification,
    TypeOperationComptable,
    TypeTresorerie,
)
from gestion_lsd.domaine.modeles.audit import AuditLog
from gestion_lsd.domaine.modeles.presence import Notification
from gestion_lsd.domaine.services.comptabilite import (
    ConflitComptabilite,
    DonneesInvalidesComptabilite,
    ElementComptableIntrouvable,
    SemaineCloturee,
    ServiceComptabilite,
    generer_semaines_annee,
    semaine_pour_date,
)
from gestion_lsd.domaine.services.notifications import ServiceNotifications
from tests._auth_helpers import creer_utilisateur
from tests._http_helpers import client_api, entetes_internes, entetes_jwt


AUJOURD_HUI = date(2025, 3, 20)


def test_annee_commencant_un_lundi() -> None:
    semaines = generer_semaines_annee(2024)

    assert len(semaines) == 53
    assert (semaines[0].code, semaines[0].date_debut, semaines[0].date_fin) == ("S01", date(2024, 1, 1), date(2024, 1, 7))
    assert (semaines[-1].code, semaines[-1].date_debut, semaines[-1].date_fin) == (
        "S53",
        date(2024, 12, 30),
        date(2024, 12, 31),
    )


def test_annee_commencant_un_mercredi_semaine_partielle() -> None:
    semaines = generer_semaines_annee(2025)

    assert semaines[0].date_debut == date(2025, 1, 1)
    assert semaines[0].date_fin == date(2025, 1, 5)
    assert semaines[0].nombre_jours == 5
    assert semaines[1].date_debut == date(2025, 1, 6)
    assert semaines[-1].code == "S53"
    assert semaines[-1].date_debut == date(2025, 12, 29)
    assert semaines[-1].nombre_jours == 3
    assert semaines[0].libelle == "S1 [01/01/2025 - 05/01/2025]"


def test_annee_commencant_un_dimanche() -> None:
    semaines = generer_semaines_annee(2023)

    assert semaines[0].nombre_jours == 1
    assert semaines[-1].date_debut == date(2023, 12, 25)
    assert semaines[-1].date_fin == date(2023, 12, 31)


@pytest.mark.parametrize("annee", [2023, 2024, 2025, 2026, 2027, 2028])
def test_semaines_contigues_couvrent_l_annee(annee: int) -> None:
    semaines = generer_semaines_annee(annee)

    assert semaines[0].date_debut == date(annee, 1, 1)
    assert semaines[-1].date_fin == date(annee, 12, 31)
    for precedente, suivante in zip(semaines, semaines[1:]):
        assert (suivante.date_debut - precedente.date_fin).days == 1
        assert suivante.date_debut.weekday() == 0
    assert sum(s.nombre_jours for s in semaines) == (date(annee, 12, 31) - date(annee, 1, 1)).days + 1


def test_semaine_pour_date() -> None:
    assert semaine_pour_date(date(2025, 1, 5)).code == "S01"
    assert semaine_pour_date(date(2025, 1, 6)).code == "S02"
    assert semaine_pour_date(date(2025, 3, 10)).code == "S11"
    assert semaine_pour_date(date(2025, 3, 18)).code == "S12"


async def _plan(session: AsyncSession):
    service = ServiceComptabilite(session, delai_cloture_jours=30)
    ventes = await service.creer_compte(code_ohada="701", denomination="Ventes de marchandises", type_compte=TypeCompteComptable.ENTREE)
    achats = await service.creer_compte(code_ohada="601", denomination="Achats de marchandises", type_compte=TypeCompteComptable.SORTIE)
    divers = await service.creer_compte(code_ohada="471", denomination="Débiteurs divers", type_compte=TypeCompteComptable.ENTREE_SORTIE)
    caisse = await service.creer_tresorerie(denomination="Caisse principale", type_tresorerie=TypeTresorerie.CAISSE, solde_initial=10_000)
    return service, ventes, achats, divers, caisse


@pytest.mark.asyncio
async def test_operations_solde_et_resume(session_test: AsyncSession) -> None:
    service, ventes, achats, divers, caisse = await _plan(session_test)

    await service.enregistrer_operation(
        date_operation=date(2025, 3, 11),
        type_operation=TypeOperationComptable.RECETTE,
        compte_id=ventes.id,
        tresorerie_id=caisse.id,
        montant=50_000,
        aujourd_hui=AUJOURD_HUI,
    )
    await service.enregistrer_operation(
        date_operation=date(2025, 3, 12),
        type_operation=TypeOperationComptable.DEPENSE,
        compte_id=achats.id,
        tresorerie_id=caisse.id,
        montant=15_000,
        observation="riz 50 kg",
        aujourd_hui=AUJOURD_HUI,
    )
    await service.enregistrer_operation(
        date_operation=date(2025, 3, 13),
        type_operation=TypeOperationComptable.DEPENSE,
        compte_id=divers.id,
        tresorerie_id=caisse.id,
        montant=1_000,
        aujourd_hui=AUJOURD_HUI,
    )

    (caisse,) = await service.lister_tresoreries()
    assert caisse.solde == 44_000

    resume = await service.resume_semaine(2025, "S11")
    assert (resume.recettes, resume.depenses, resume.solde, resume.nombre_operations) == (50_000, 16_000, 34_000, 3)
    assert resume.date_debut == date(2025, 3, 10)

    assert [o.montant for o in await service.lister_operations(annee=2025, code="S11")] == [50_000, 15_000, 1_000]
    assert await service.lister_operations(annee=2025, code="S12") == []


@pytest.mark.asyncio
async def test_operation_refusee(session_test: AsyncSession) -> None:
    service, ventes, achats, _, caisse = await _plan(session_test)
    commun = dict(tresorerie_id=caisse.id, aujourd_hui=AUJOURD_HUI)

    with pytest.raises(DonneesInvalidesComptabilite, match="date future"):
        await service.enregistrer_operation(
            date_operation=date(2025, 3, 21),
            type_operation=TypeOperationComptable.RECETTE,
            compte_id=ventes.id,
            montant=1_000,
            **commun,
        )

    with pytest.raises(DonneesInvalidesComptabilite, match="n'accepte pas"):
        await service.enregistrer_operation(
            date_operation=date(2025, 3, 18),
            type_operation=TypeOperationComptable.RECETTE,
            compte_id=achats.id,
            montant=1_000,
            **commun,
        )

    with pytest.raises(DonneesInvalidesComptabilite, match="montant"):
        await service.enregistrer_operation(
            date_operation=date(2025, 3, 18),
            type_operation=TypeOperationComptable.DEPENSE,
            compte_id=achats.id,
            montant=0,
            **commun,
        )

    await service.desactiver_compte(ventes.id)
    with pytest.raises(DonneesInvalidesComptabilite, match="désactivé"):
        await service.enregistrer_operation(
            date_operation=date(2025, 3, 18),
            type_operation=TypeOperationComptable.RECETTE,
            compte_id=ventes.id,
            montant=1_000,
            **commun,
        )


@pytest.mark.asyncio
async def test_compte_et_tresorerie_uniques(session_test: AsyncSession) -> None:
    service, *_ = await _plan(session_test)

    with pytest.raises(ConflitComptabilite):
        await service.creer_compte(code_ohada="701", denomination="Autre", type_compte=TypeCompteComptable.ENTREE)
    with pytest.raises(ConflitComptabilite):
        await service.creer_tresorerie(denomination="caisse principale", type_tresorerie=TypeTresorerie.CAISSE)


@pytest.mark.asyncio
async def test_semaine_cloturee_figee(session_test: AsyncSession) -> None:
    service, ventes, _, _, caisse = await _plan(session_test)
    operation = await service.enregistrer_operation(
        date_operation=date(2025, 3, 11),
        type_operation=TypeOperationComptable.RECETTE,
        compte_id=ventes.id,
        tresorerie_id=caisse.id,
        montant=5_000,
        aujourd_hui=AUJOURD_HUI,
    )

    semaine = await service.cloturer_semaine(2025, "S11", aujourd_hui=AUJOURD_HUI)
    assert semaine.cloture is True
    assert semaine.cloturee_le is not None

    with pytest.raises(SemaineCloturee):
        await service.enregistrer_operation(
            date_operation=date(2025, 3, 13),
            type_operation=TypeOperationComptable.RECETTE,
            compte_id=ventes.id,
            tresorerie_id=caisse.id,
            montant=1_000,
            aujourd_hui=AUJOURD_HUI,
        )
    with pytest.raises(SemaineCloturee):
        await service.desactiver_operation(operation.id)

    with pytest.raises(DonneesInvalidesComptabilite, match="pas terminée"):
        await service.cloturer_semaine(2025, "S12", aujourd_hui=AUJOURD_HUI)


@pytest.mark.asyncio
async def test_desactiver_operation_reverse_le_solde(session_test: AsyncSession) -> None:
    service, ventes, _, _, caisse = await _plan(session_test)
    operation = await service.enregistrer_operation(
        date_operation=date(2025, 3, 18),
        type_operation=TypeOperationComptable.RECETTE,
        compte_id=ventes.id,
        tresorerie_id=caisse.id,
        montant=2_500,
        aujourd_hui=AUJOURD_HUI,
    )

    operation = await service.desactiver_operation(operation.id)

    assert operation.actif is False
    (caisse,) = await service.lister_tresoreries()
    assert caisse.solde == 10_000
    assert await service.lister_operations(annee=2025) == []
    assert len(await service.lister_operations(annee=2025, inclure_inactives=True)) == 1


@pytest.mark.asyncio
async def test_statut_cloture(session_test: AsyncSession) -> None:
    service = ServiceComptabilite(session_test, delai_cloture_jours=30)
    await service.cloturer_semaine(2025, "S11", aujourd_hui=AUJOURD_HUI)

    en_cours = await service.statut_cloture(2025, "S12", aujourd_hui=AUJOURD_HUI)
    assert (en_cours.existe, en_cours.peut_cloturer) == (True, False)

    deja = await service.statut_cloture(2025, "S11", aujourd_hui=AUJOURD_HUI)
    assert (deja.cloture, deja.raison) == (True, "Semaine déjà clôturée")

    terminee = await service.statut_cloture(2025, "S10", aujourd_hui=AUJOURD_HUI)
    assert terminee.peut_cloturer is True
    assert terminee.jours_avant_auto_cloture == 19

    inconnue = await service.statut_cloture(2025, "S99", aujourd_hui=AUJOURD_HUI)
    assert inconnue.existe is False


@pytest.mark.asyncio
async def test_auto_cloture_apres_delai(session_test: AsyncSession) -> None:
    service = ServiceComptabilite(session_test, delai_cloture_jours=30)

    clotures = await service.verifier_auto_cloture(2025, aujourd_hui=AUJOURD_HUI)

    assert clotures == ["S01", "S02", "S03", "S04", "S05", "S06", "S07"]
    assert await service.verifier_auto_cloture(2025, aujourd_hui=AUJOURD_HUI) == []
    assert [s.code for s in await service.semaines_cloturees(2025)] == clotures
    assert len(await service.semaines_non_cloturees(2025)) == 53 - 7


@pytest.mark.asyncio
async def test_cloturer_annee(session_test: AsyncSession) -> None:
    service = ServiceComptabilite(session_test)
    await service.cloturer_semaine(2024, "S01", aujourd_hui=AUJOURD_HUI)

    clotures = await service.cloturer_annee(2024)

    assert len(clotures) == 52
    assert "S01" not in clotures
    assert await service.semaines_non_cloturees(2024) == []


@pytest.mark.asyncio
async def test_decloture_tracee(session_test: AsyncSession) -> None:
    admin, _ = await creer_utilisateur(session_test, email="admin@example.com", roles=(CodeRole.ADMIN.value,))
    service = ServiceComptabilite(session_test)
    await service.cloturer_semaine(2025, "S02", aujourd_hui=AUJOURD_HUI)

    semaine = await service.decloturer_semaine(2025, "S02", par_user_id=admin.id)

    assert semaine.cloture is False
    assert semaine.cloturee_le is None
    (log,) = (await session_test.execute(select(AuditLog).where(AuditLog.action == "decloture_semaine"))).scalars().all()
    assert log.user_id == admin.id
    assert log.donnees == {"annee": 2025, "code": "S02"}


@pytest.mark.asyncio
async def test_api_decloture_reservee_admin(session_test: AsyncSession) -> None:
    _, token_admin = await creer_utilisateur(session_test, email="admin@example.com", roles=(CodeRole.ADMIN.value,))
    _, token_vendeur = await creer_utilisateur(session_test, email="vendeur@example.com", roles=(CodeRole.VENDEUR.value,))
    await ServiceComptabilite(session_test).cloturer_semaine(2025, "S02", aujourd_hui=AUJOURD_HUI)

    async with client_api(session_test) as client:
        url = "/api/interne/comptabilite/semaines/2025/S02/decloturer"

        r = await client.post(url, headers=entetes_internes())
        assert r.status_code == 401

        r = await client.post(url, headers=entetes_jwt(token_vendeur))
        assert r.status_code == 403

        r = await client.post(url, headers=entetes_jwt(token_admin))
        assert r.status_code == 200, r.text
        assert r.json()["cloture"] is False


@pytest.mark.asyncio
async def test_api_comptabilite(session_test: AsyncSession) -> None:
    async with client_api(session_test) as client:
        r = await client.post(
            "/api/interne/comptabilite/comptes",
            headers=entetes_internes(),
            json={"code_ohada": "701", "denomination": "Ventes", "type_compte": "entree"},
        )
        assert r.status_code == 201, r.text
        compte_id = r.json()["id"]

        r = await client.post(
            "/api/interne/comptabilite/tresoreries",
            headers=entetes_internes(),
            json={"denomination": "MoMo LSD", "type_tresorerie": "momo_pay", "numero": "97000000"},
        )
        assert r.status_code == 201, r.text
        tresorerie_id = r.json()["id"]

        r = await client.post(
            "/api/interne/comptabilite/operations",
            headers=entetes_internes(),
            json={
                "date_operation": "2099-01-01",
                "type_operation": "recette",
                "compte_id": compte_id,
                "tresorerie_id": tresorerie_id,
                "montant": 1000,
            },
        )
        assert r.status_code == 400

        r = await client.post(
            "/api/interne/comptabilite/operations",
            headers=entetes_internes(),
            json={
                "date_operation": "2024-06-12",
                "type_operation": "recette",
                "compte_id": compte_id,
                "tresorerie_id": tresorerie_id,
                "montant": 1000,
            },
        )
        assert r.status_code == 201, r.text

        r = await client.get("/api/interne/comptabilite/semaines/2024", headers=entetes_internes())
        assert r.status_code == 200
        assert len(r.json()) == 53

        r = await client.get("/api/interne/comptabilite/semaines/2024/S24/resume", headers=entetes_internes())
        assert r.status_code == 200
        assert r.json()["recettes"] == 1000

        r = await client.post("/api/interne/comptabilite/semaines/2024/cloturer", headers=entetes_internes())
        assert r.json()["semaines"][0] == "S01"

        r = await client.post(
            "/api/interne/comptabilite/operations",
            headers=entetes_internes(),
            json={
                "date_operation": "2024-06-13",
                "type_operation": "recette",
                "compte_id": compte_id,
                "tresorerie_id": tresorerie_id,
                "montant": 500,
            },
        )
        assert r.status_code == 409

        r = await client.get("/api/interne/comptabilite/operations", params={"annee": 2024, "code": "S24"}, headers=entetes_internes())
        assert [o["montant"] for o in r.json()] == [1000]

        r = await client.get("/api/interne/comptabilite/operations", params={"annee": 2024, "code": "24"}, headers=entetes_internes())
        assert r.status_code == 422


async def _mouvements_mars(service: ServiceComptabilite, ventes, achats, divers, caisse) -> None:
    for jour, type_operation, compte, montant in [
        (11, TypeOperationComptable.RECETTE, ventes, 50_000),
        (12, TypeOperationComptable.DEPENSE, achats, 15_000),
        (14, TypeOperationComptable.RECETTE, divers, 2_000),
        (13, TypeOperationComptable.DEPENSE, divers, 1_000),
        (18, TypeOperationComptable.RECETTE, ventes, 7_000),
        (19, TypeOperationComptable.DEPENSE, achats, 7_000),
    ]:
        await service.enregistrer_operation(
            date_operation=date(2025, 3, jour),
            type_operation=type_operation,
            compte_id=compte.id,
            tresorerie_id=caisse.id,
            montant=montant,
            aujourd_hui=AUJOURD_HUI,
        )

    annulee = await service.enregistrer_operation(
        date_operation=date(2025, 3, 5),
        type_operation=TypeOperationComptable.RECETTE,
        compte_id=ventes.id,
        tresorerie_id=caisse.id,
        montant=999,
        aujourd_hui=AUJOURD_HUI,
    )
    await service.desactiver_operation(annulee.id)


@pytest.mark.asyncio
async def test_grand_livre_par_compte_avec_solde_cumule(session_test: AsyncSession) -> None:
    service, ventes, achats, divers, caisse = await _plan(session_test)
    await _mouvements_mars(service, ventes, achats, divers, caisse)

    livre = await service.grand_livre(date(2025, 3, 1), date(2025, 3, 16))

    assert [c.code_ohada for c in livre.comptes] == ["471", "601", "701"]
    (divers_livre, achats_livre, ventes_livre) = livre.comptes
    # trié par date, pas par ordre de saisie
    assert [(m.date_operation.day, m.debit, m.credit, m.solde_cumule) for m in divers_livre.mouvements] == [
        (13, 1_000, 0, -1_000),
        (14, 0, 2_000, 1_000),
    ]
    assert (divers_livre.total_debit, divers_livre.total_credit, divers_livre.solde) == (1_000, 2_000, 1_000)
    assert achats_livre.solde == -15_000
    assert ventes_livre.total_credit == 50_000
    assert (livre.total_debit, livre.total_credit, livre.solde, livre.nombre_operations) == (16_000, 52_000, 36_000, 4)

    classe_6 = await service.grand_livre(date(2025, 3, 1), date(2025, 3, 31), classe="6")
    assert [(c.code_ohada, c.total_debit) for c in classe_6.comptes] == [("601", 22_000)]

    compte = await service.grand_livre_compte(ventes.id, date(2025, 3, 1), date(2025, 3, 31))
    assert [m.credit for m in compte.mouvements] == [50_000, 7_000]
    with pytest.raises(ElementComptableIntrouvable):
        await service.grand_livre_compte(uuid4(), date(2025, 3, 1), date(2025, 3, 31))

    with pytest.raises(DonneesInvalidesComptabilite):
        await service.grand_livre(date(2025, 3, 31), date(2025, 3, 1))


@pytest.mark.asyncio
async def test_balance_et_equilibre(session_test: AsyncSession) -> None:
    service, ventes, achats, divers, caisse = await _plan(session_test)
    await _mouvements_mars(service, ventes, achats, divers, caisse)

    balance = await service.balance(date(2025, 3, 1), date(2025, 3, 16))
    assert [(l.code_ohada, l.debit, l.credit, l.solde, l.nombre_mouvements) for l in balance.lignes] == [
        ("471", 1_000, 2_000, 1_000, 2),
        ("601", 15_000, 0, -15_000, 1),
        ("701", 0, 50_000, 50_000, 1),
    ]
    assert not balance.equilibree
    assert balance.ecart == 36_000

    semaine_12 = await service.balance(date(2025, 3, 17), date(2025, 3, 23))
    assert (semaine_12.total_debit, semaine_12.total_credit) == (7_000, 7_000)
    assert semaine_12.equilibree and semaine_12.ecart == 0

    vide = await service.balance(date(2025, 1, 1), date(2025, 1, 31))
    assert vide.lignes == [] and vide.equilibree

    classes = await service.balance_par_classe(date(2025, 3, 1), date(2025, 3, 31))
    assert [(c.classe, c.denomination, c.debit, c.credit) for c in classes] == [
        ("4", "Comptes de tiers", 1_000, 2_000),
        ("6", "Comptes de charges", 22_000, 0),
        ("7", "Comptes de produits", 0, 57_000),
    ]


@pytest.mark.asyncio
async def test_api_grand_livre_et_balance(session_test: AsyncSession) -> None:
    service, ventes, achats, divers, caisse = await _plan(session_test)
    await _mouvements_mars(service, ventes, achats, divers, caisse)

    async with client_api(session_test) as client:
        r = await client.get(
            "/api/interne/comptabilite/grand-livre",
            params={"debut": "2025-03-01", "fin": "2025-03-31"},
            headers=entetes_internes(),
        )
        assert r.status_code == 200, r.text
        assert r.json()["nombre_operations"] == 6
        assert r.json()["comptes"][0]["mouvements"][-1]["solde_cumule"] == 1_000

        r = await client.get(
            f"/api/interne/comptabilite/grand-livre/{uuid4()}",
            params={"debut": "2025-03-01", "fin": "2025-03-31"},
            headers=entetes_internes(),
        )
        assert r.status_code == 404

        r = await client.get(
            "/api/interne/comptabilite/balance",
            params={"debut": "2025-03-17", "fin": "2025-03-23"},
            headers=entetes_internes(),
        )
        assert r.status_code == 200
        assert r.json()["equilibree"] is True

        r = await client.get(
            "/api/interne/comptabilite/balance",
            params={"debut": "2025-03-23", "fin": "2025-03-17"},
            headers=entetes_internes(),
        )
        assert r.status_code == 400

        r = await client.get(
            "/api/interne/comptabilite/balance/classes",
            params={"debut": "2025-03-01", "fin": "2025-03-31"},
            headers=entetes_internes(),
        )
        assert [c["classe"] for c in r.json()] == ["4", "6", "7"]


@pytest.mark.asyncio
async def test_cloture_notifie_les_admins_actifs(session_test: AsyncSession) -> None:
    admin, _ = await creer_utilisateur(session_test, email="compta-admin@example.com", roles=(CodeRole.ADMIN.value,))
    ancien, _ = await creer_utilisateur(
        session_test, email="ancien-admin@example.com", roles=(CodeRole.ADMIN.value,), actif=False
    )
    vendeur, _ = await creer_utilisateur(session_test, email="compta-vente@example.com", roles=(CodeRole.VENDEUR.value,))
    service = ServiceComptabilite(session_test, delai_cloture_jours=30)
    notifications = ServiceNotifications(session_test)

    await service.cloturer_semaine(2025, "S11", aujourd_hui=AUJOURD_HUI)
    await service.cloturer_semaine(2025, "S11", aujourd_hui=AUJOURD_HUI)

    (notification,) = await notifications.lister(admin.id)
    assert notification.message == "Semaine S11 2025 clôturée."
    assert notification.type_notification == TypeNotification.SUCCES
    assert await notifications.lister(ancien.id) == []
    assert await notifications.lister(vendeur.id) == []

    await service.verifier_auto_cloture(2025, aujourd_hui=AUJOURD_HUI)
    await service.verifier_auto_cloture(2025, aujourd_hui=AUJOURD_HUI)

    messages = [n.message for n in await notifications.lister(admin.id)]
    assert len(messages) == 2
    assert "Clôture automatique 2025 : S01, S02, S03, S04, S05, S06, S07." in messages
    assert (await session_test.execute(select(func.count()).select_from(Notification))).scalar_one() == 2
