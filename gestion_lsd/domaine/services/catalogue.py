from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import TypeArticle
from gestion_lsd.domaine.modeles.catalogue import (
    Boisson,
    ElementMenuCompose,
    Ingredient,
    Menu,
    MenuCompose,
    MenuIngredient,
    Supplement,
)


logger = logging.getLogger(__name__)


class ErreurCatalogue(Exception):
    """Erreur générique catalogue."""


class DonneesInvalidesCatalogue(ErreurCatalogue):
    pass


class ElementCatalogueIntrouvable(ErreurCatalogue):
    pass


class ConflitCatalogue(ErreurCatalogue):
    pass


@dataclass(frozen=True)
class ElementDemande:
    """Article demandé dans un menu composé."""

    type_article: TypeArticle
    article_id: UUID
    quantite: int = 1


@dataclass
class RapportLotSupplements:
    crees: list[Supplement] = field(default_factory=list)
    doublons: list[str] = field(default_factory=list)
    erreurs: list[str] = field(default_factory=list)


def _verifier_prix(prix: int | None) -> None:
    if prix is not None and int(prix) < 0:
        raise DonneesInvalidesCatalogue("Le prix doit être >= 0.")


def _denomination(valeur: str | None) -> str:
    if not valeur or not valeur.strip():
        raise DonneesInvalidesCatalogue("La dénomination est obligatoire.")
    return valeur.strip()


def _groupe(valeur: str | None) -> str:
    if not valeur or not valeur.strip():
        raise DonneesInvalidesCatalogue("Le groupe est obligatoire.")
    return valeur.strip()


def _prix_supplement(prix: int | str | None) -> int:
    # "gratuit" (ou vide) vaut 0
    if prix is None or (isinstance(prix, str) and prix.strip().lower() in ("", "gratuit")):
        return 0
    try:
        valeur = int(prix)
    except (TypeError, ValueError):
        raise DonneesInvalidesCatalogue(f"Prix invalide : {prix!r}.") from None
    _verifier_prix(valeur)
    return valeur


def _element(menu_compose: MenuCompose, type_article: TypeArticle, article_id: UUID) -> ElementMenuCompose | None:
    for element in menu_compose.contenu:
        if element.type_article == TypeArticle(type_article) and element.article_id == article_id:
            return element
    return None


class ServiceCatalogue:
    """Menus (avec ingrédients), boissons, menus composés et suppléments.

    - Menus, ingrédients et menus composés : suppression logique.
    - Boissons : désactivation OU suppression physique (`supprimer_boisson`).
    - Suppléments : désactivation/réactivation OU suppression physique.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Ingrédients
    # ------------------------------------------------------------------

    async def creer_ingredient(
        self,
        *,
        nom: str,
        quantite: float = 0.0,
        unite_nom: str = "gramme",
        unite_symbole: str = "g",
        cal_100: float | None = None,
        kj_100: float | None = None,
    ) -> Ingredient:
        nom = _denomination(nom)
        await self._refuser_doublon(Ingredient, Ingredient.nom, nom, "Un ingrédient avec ce nom existe déjà.")

        ingredient = Ingredient(
            nom=nom,
            quantite=float(quantite),
            unite_nom=unite_nom,
            unite_symbole=unite_symbole,
            cal_100=cal_100,
            kj_100=kj_100,
            actif=True,
        )
        self._session.add(ingredient)
        await self._session.commit()
        await self._session.refresh(ingredient)
        return ingredient

    async def lister_ingredients(self, *, inclure_inactifs: bool = False) -> list[Ingredient]:
        stmt = select(Ingredient).order_by(Ingredient.nom.asc())
        if not inclure_inactifs:
            stmt = stmt.where(Ingredient.actif.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def desactiver_ingredient(self, ingredient_id: UUID) -> Ingredient:
        ingredient = await self._obtenir(Ingredient, ingredient_id, "Ingrédient introuvable.")
        ingredient.actif = False
        await self._session.commit()
        return ingredient

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    async def creer_menu(
        self,
        *,
        denomination: str,
        prix: int = 2000,
        description: str | None = None,
        image_url: str | None = None,
        ingredient_ids: list[UUID] | None = None,
    ) -> Menu:
        denomination = _denomination(denomination)
        _verifier_prix(prix)
        await self._refuser_doublon(Menu, Menu.denomination, denomination, "Un menu avec cette dénomination existe déjà.")

        menu = Menu(
            denomination=denomination,
            prix=int(prix),
            description=description,
            image_url=image_url,
            actif=True,
        )
        self._session.add(menu)
        await self._session.flush()

        try:
            await self._lier_ingredients(menu.id, ingredient_ids or [])
        except DonneesInvalidesCatalogue:
            await self._session.rollback()
            raise

        await self._session.commit()
        logger.info("menu_cree menu_id=%s denomination=%s", menu.id, denomination)
        return await self.obtenir_menu(menu.id)

    async def obtenir_menu(self, menu_id: UUID) -> Menu:
        res = await self._session.execute(
            select(Menu).where(Menu.id == menu_id).execution_options(populate_existing=True)
        )
        menu = res.scalar_one_or_none()
        if menu is None:
            raise ElementCatalogueIntrouvable("Menu introuvable.")
        return menu

    async def lister_menus(self, *, inclure_inactifs: bool = False) -> list[Menu]:
        stmt = select(Menu).order_by(Menu.denomination.asc())
        if not inclure_inactifs:
            stmt = stmt.where(Menu.actif.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def mettre_a_jour_menu(
        self,
        menu_id: UUID,
        *,
        denomination: str | None = None,
        prix: int | None = None,
        description: str | None = None,
        image_url: str | None = None,
        ingredient_ids: list[UUID] | None = None,
        actif: bool | None = None,
    ) -> Menu:
        menu = await self.obtenir_menu(menu_id)

        if denomination is not None:
            denomination = _denomination(denomination)
            if denomination.lower() != menu.denomination.lower():
                await self._refuser_doublon(
                    Menu, Menu.denomination, denomination, "Un menu avec cette dénomination existe déjà."
                )
            menu.denomination = denomination
        if prix is not None:
            _verifier_prix(prix)
            menu.prix = int(prix)
        if description is not None:
            menu.description = description
        if image_url is not None:
            menu.image_url = image_url
        if actif is not None:
            menu.actif = actif

        if ingredient_ids is not None:
            menu.ingredients.clear()
            await self._session.flush()
            try:
                await self._lier_ingredients(menu_id, ingredient_ids)
            except DonneesInvalidesCatalogue:
                await self._session.rollback()
                raise

        await self._session.commit()
        return await self.obtenir_menu(menu_id)

    async def desactiver_menu(self, menu_id: UUID) -> Menu:
        return await self.mettre_a_jour_menu(menu_id, actif=False)

    # ------------------------------------------------------------------
    # Boissons
    # ------------------------------------------------------------------

    async def creer_boisson(
        self,
        *,
        denomination: str,
        prix: int = 1000,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Boisson:
        denomination = _denomination(denomination)
        _verifier_prix(prix)
        await self._refuser_doublon(
            Boisson, Boisson.denomination, denomination, "Une boisson avec cette dénomination existe déjà."
        )

        boisson = Boisson(
            denomination=denomination,
            prix=int(prix),
            description=description,
            image_url=image_url,
            actif=True,
        )
        self._session.add(boisson)
        await self._session.commit()
        await self._session.refresh(boisson)
        return boisson

    async def obtenir_boisson(self, boisson_id: UUID) -> Boisson:
        return await self._obtenir(Boisson, boisson_id, "Boisson introuvable.")

    async def lister_boissons(self, *, inclure_inactifs: bool = False) -> list[Boisson]:
        stmt = select(Boisson).order_by(Boisson.denomination.asc())
        if not inclure_inactifs:
            stmt = stmt.where(Boisson.actif.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def mettre_a_jour_boisson(
        self,
        boisson_id: UUID,
        *,
        denomination: str | None = None,
        prix: int | None = None,
        description: str | None = None,
        image_url: str | None = None,
        actif: bool | None = None,
    ) -> Boisson:
        boisson = await self.obtenir_boisson(boisson_id)

        if denomination is not None:
            denomination = _denomination(denomination)
            if denomination.lower() != boisson.denomination.lower():
                await self._refuser_doublon(
                    Boisson, Boisson.denomination, denomination, "Une boisson avec cette dénomination existe déjà."
                )
            boisson.denomination = denomination
        if prix is not None:
            _verifier_prix(prix)
            boisson.prix = int(prix)
        if description is not None:
            boisson.description = description
        if image_url is not None:
            boisson.image_url = image_url
        if actif is not None:
            boisson.actif = actif

        await self._session.commit()
        await self._session.refresh(boisson)
        return boisson

    async def supprimer_boisson(self, boisson_id: UUID) -> None:
        """Suppression physique (les commandes gardent la dénomination copiée)."""

        boisson = await self.obtenir_boisson(boisson_id)
        await self._session.delete(boisson)
        await self._session.commit()
        logger.info("boisson_supprimee boisson_id=%s", boisson_id)

    # ------------------------------------------------------------------
    # Menus composés (formules)
    # ------------------------------------------------------------------

    async def creer_menu_compose(
        self,
        *,
        denomination: str,
        prix: int = 0,
        description: str | None = None,
        contenu: list[ElementDemande] | None = None,
    ) -> MenuCompose:
        denomination = _denomination(denomination)
        _verifier_prix(prix)
        await self._refuser_doublon(
            MenuCompose, MenuCompose.denomination, denomination, "Un menu composé avec cette dénomination existe déjà."
        )

        elements = await self._construire_elements(contenu or [])
        menu_compose = MenuCompose(
            denomination=denomination,
            prix=int(prix),
            description=description,
            actif=True,
            contenu=elements,
        )
        self._session.add(menu_compose)
        await self._session.commit()
        logger.info(
            "menu_compose_cree menu_compose_id=%s denomination=%s elements=%s",
            menu_compose.id,
            denomination,
            len(elements),
        )
        return await self.obtenir_menu_compose(menu_compose.id)

    async def obtenir_menu_compose(self, menu_compose_id: UUID) -> MenuCompose:
        res = await self._session.execute(
            select(MenuCompose).where(MenuCompose.id == menu_compose_id).execution_options(populate_existing=True)
        )
        menu_compose = res.scalar_one_or_none()
        if menu_compose is None:
            raise ElementCatalogueIntrouvable(f"Menu composé {menu_compose_id} introuvable.")
        return menu_compose

    async def lister_menus_composes(self, *, inclure_inactifs: bool = False) -> list[MenuCompose]:
        stmt = select(MenuCompose).order_by(MenuCompose.denomination.asc())
        if not inclure_inactifs:
            stmt = stmt.where(MenuCompose.actif.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def mettre_a_jour_menu_compose(
        self,
        menu_compose_id: UUID,
        *,
        denomination: str | None = None,
        prix: int | None = None,
        description: str | None = None,
        contenu: list[ElementDemande] | None = None,
        actif: bool | None = None,
    ) -> MenuCompose:
        """`contenu`, s’il est fourni, remplace entièrement la composition."""

        menu_compose = await self.obtenir_menu_compose(menu_compose_id)

        if denomination is not None:
            denomination = _denomination(denomination)
            if denomination.lower() != menu_compose.denomination.lower():
                await self._refuser_doublon(
                    MenuCompose,
                    MenuCompose.denomination,
                    denomination,
                    "Un menu composé avec cette dénomination existe déjà.",
                )
            menu_compose.denomination = denomination
        if prix is not None:
            _verifier_prix(prix)
            menu_compose.prix = int(prix)
        if description is not None:
            menu_compose.description = description
        if actif is not None:
            menu_compose.actif = actif

        if contenu is not None:
            elements = await self._construire_elements(contenu)
            menu_compose.contenu.clear()
            await self._session.flush()
            menu_compose.contenu.extend(elements)

        await self._session.commit()
        return await self.obtenir_menu_compose(menu_compose_id)

    async def desactiver_menu_compose(self, menu_compose_id: UUID) -> MenuCompose:
        return await self.mettre_a_jour_menu_compose(menu_compose_id, actif=False)

    async def ajouter_element(
        self,
        menu_compose_id: UUID,
        *,
        type_article: TypeArticle,
        article_id: UUID,
        quantite: int = 1,
    ) -> MenuCompose:
        """Ajoute un article ; s’il est déjà présent, les quantités s’additionnent."""

        if quantite < 1:
            raise DonneesInvalidesCatalogue("La quantité doit être au moins 1.")

        menu_compose = await self.obtenir_menu_compose(menu_compose_id)
        existant = _element(menu_compose, type_article, article_id)
        if existant is not None:
            existant.quantite += quantite
        else:
            (nouveau,) = await self._construire_elements([ElementDemande(type_article, article_id, quantite)])
            menu_compose.contenu.append(nouveau)

        await self._session.commit()
        return await self.obtenir_menu_compose(menu_compose_id)

    async def retirer_element(self, menu_compose_id: UUID, *, type_article: TypeArticle, article_id: UUID) -> MenuCompose:
        menu_compose = await self.obtenir_menu_compose(menu_compose_id)
        existant = _element(menu_compose, type_article, article_id)
        if existant is not None:
            menu_compose.contenu.remove(existant)
            await self._session.commit()
        return await self.obtenir_menu_compose(menu_compose_id)

    async def modifier_quantite_element(
        self,
        menu_compose_id: UUID,
        *,
        type_article: TypeArticle,
        article_id: UUID,
        quantite: int,
    ) -> MenuCompose:
        """Une quantité < 1 retire l’article."""

        if quantite < 1:
            return await self.retirer_element(menu_compose_id, type_article=type_article, article_id=article_id)

        menu_compose = await self.obtenir_menu_compose(menu_compose_id)
        existant = _element(menu_compose, type_article, article_id)
        if existant is None:
            raise ElementCatalogueIntrouvable("Article absent de ce menu composé.")
        existant.quantite = quantite
        await self._session.commit()
        return await self.obtenir_menu_compose(menu_compose_id)

    # ------------------------------------------------------------------
    # Suppléments
    # ------------------------------------------------------------------

    async def creer_supplement(
        self,
        *,
        denomination: str,
        groupe: str,
        prix: int | str = 0,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Supplement:
        supplement = await self._nouveau_supplement(
            denomination=denomination, groupe=groupe, prix=prix, description=description, image_url=image_url
        )
        self._session.add(supplement)
        await self._session.commit()
        await self._session.refresh(supplement)
        return supplement

    async def creer_supplements_lot(self, supplements: list[dict]) -> RapportLotSupplements:
        """Import en lot : les doublons et les lignes invalides sont écartés, le reste est créé."""

        rapport = RapportLotSupplements()
        vus: set[tuple[str, str]] = set()
        for donnees in supplements:
            libelle = f"{donnees.get('denomination')} ({donnees.get('groupe')})"
            try:
                supplement = await self._nouveau_supplement(**donnees)
            except ConflitCatalogue:
                rapport.doublons.append(libelle)
                continue
            except DonneesInvalidesCatalogue as e:
                rapport.erreurs.append(f"{libelle}: {e}")
                continue

            cle = (supplement.denomination.lower(), supplement.groupe.lower())
            if cle in vus:
                rapport.doublons.append(libelle)
                continue
            vus.add(cle)
            self._session.add(supplement)
            rapport.crees.append(supplement)

        await self._session.commit()
        for supplement in rapport.crees:
            await self._session.refresh(supplement)
        logger.info(
            "supplements_lot crees=%s doublons=%s erreurs=%s",
            len(rapport.crees),
            len(rapport.doublons),
            len(rapport.erreurs),
        )
        return rapport

    async def obtenir_supplement(self, supplement_id: UUID) -> Supplement:
        return await self._obtenir(Supplement, supplement_id, "Supplément introuvable.")

    async def lister_supplements(self, *, groupe: str | None = None, inclure_inactifs: bool = False) -> list[Supplement]:
        stmt = select(Supplement).order_by(Supplement.groupe.asc(), Supplement.denomination.asc())
        if groupe:
            stmt = stmt.where(func.lower(Supplement.groupe) == groupe.strip().lower())
        if not inclure_inactifs:
            stmt = stmt.where(Supplement.actif.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def mettre_a_jour_supplement(
        self,
        supplement_id: UUID,
        *,
        denomination: str | None = None,
        groupe: str | None = None,
        prix: int | str | None = None,
        description: str | None = None,
        image_url: str | None = None,
        actif: bool | None = None,
    ) -> Supplement:
        supplement = await self.obtenir_supplement(supplement_id)

        nouvelle_denomination = _denomination(denomination) if denomination is not None else supplement.denomination
        nouveau_groupe = _groupe(groupe) if groupe is not None else supplement.groupe
        if (nouvelle_denomination.lower(), nouveau_groupe.lower()) != (
            supplement.denomination.lower(),
            supplement.groupe.lower(),
        ):
            await self._refuser_supplement_doublon(nouvelle_denomination, nouveau_groupe)
        supplement.denomination = nouvelle_denomination
        supplement.groupe = nouveau_groupe

        if prix is not None:
            supplement.prix = _prix_supplement(prix)
        if description is not None:
            supplement.description = description
        if image_url is not None:
            supplement.image_url = image_url
        if actif is not None:
            supplement.actif = actif

        await self._session.commit()
        await self._session.refresh(supplement)
        return supplement

    async def desactiver_supplement(self, supplement_id: UUID) -> Supplement:
        return await self.mettre_a_jour_supplement(supplement_id, actif=False)

    async def reactiver_supplement(self, supplement_id: UUID) -> Supplement:
        return await self.mettre_a_jour_supplement(supplement_id, actif=True)

    async def supprimer_supplement(self, supplement_id: UUID) -> None:
        supplement = await self.obtenir_supplement(supplement_id)
        await self._session.delete(supplement)
        await self._session.commit()
        logger.info("supplement_supprime supplement_id=%s", supplement_id)

    async def calculer_total_supplements(self, supplement_ids: list[UUID]) -> int:
        """Somme des prix ; les identifiants inconnus et les gratuits comptent 0."""

        if not supplement_ids:
            return 0
        res = await self._session.execute(
            select(Supplement.id, Supplement.prix).where(Supplement.id.in_(set(supplement_ids)))
        )
        prix = {r[0]: int(r[1]) for r in res.all()}
        return sum(prix.get(i, 0) for i in supplement_ids)

    # ------------------------------------------------------------------

    async def _lier_ingredients(self, menu_id: UUID, ingredient_ids: list[UUID]) -> None:
        ids = list(dict.fromkeys(ingredient_ids))
        if not ids:
            return

        res = await self._session.execute(
            select(Ingredient.id).where(Ingredient.id.in_(ids)).where(Ingredient.actif.is_(True))
        )
        connus = {r[0] for r in res.all()}
        inconnus = [str(i) for i in ids if i not in connus]
        if inconnus:
            raise DonneesInvalidesCatalogue(f"Ingrédients inconnus ou inactifs : {inconnus}")

        for ingredient_id in ids:
            self._session.add(MenuIngredient(menu_id=menu_id, ingredient_id=ingredient_id))
        await self._session.flush()

    async def _construire_elements(self, contenu: list[ElementDemande]) -> list[ElementMenuCompose]:
        quantites: dict[tuple[TypeArticle, UUID], int] = {}
        for demande in contenu:
            if demande.quantite < 1:
                raise DonneesInvalidesCatalogue("La quantité doit être au moins 1.")
            cle = (TypeArticle(demande.type_article), demande.article_id)
            quantites[cle] = quantites.get(cle, 0) + demande.quantite

        elements: list[ElementMenuCompose] = []
        for (type_article, article_id), quantite in quantites.items():
            modele = Menu if type_article == TypeArticle.MENU else Boisson
            article = await self._session.get(modele, article_id)
            if article is None or not article.actif:
                raise DonneesInvalidesCatalogue(f"{type_article.value} inconnu ou inactif : {article_id}")
            elements.append(
                ElementMenuCompose(
                    type_article=type_article,
                    article_id=article_id,
                    denomination=article.denomination,
                    quantite=quantite,
                )
            )
        return elements

    async def _nouveau_supplement(
        self,
        *,
        denomination: str,
        groupe: str,
        prix: int | str = 0,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Supplement:
        denomination = _denomination(denomination)
        groupe = _groupe(groupe)
        prix = _prix_supplement(prix)
        await self._refuser_supplement_doublon(denomination, groupe)
        return Supplement(
            denomination=denomination,
            groupe=groupe,
            prix=prix,
            description=description,
            image_url=image_url,
            actif=True,
        )

    async def _refuser_supplement_doublon(self, denomination: str, groupe: str) -> None:
        res = await self._session.execute(
            select(Supplement.id)
            .where(func.lower(Supplement.denomination) == denomination.lower())
            .where(func.lower(Supplement.groupe) == groupe.lower())
        )
        if res.first() is not None:
            raise ConflitCatalogue(f"{denomination} existe déjà dans {groupe}.")

    async def _obtenir(self, modele, identifiant: UUID, message: str):
        objet = await self._session.get(modele, identifiant)
        if objet is None:
            raise ElementCatalogueIntrouvable(message)
        return objet

    async def _refuser_doublon(self, modele, colonne, valeur: str, message: str) -> None:
        res = await self._session.execute(select(modele.id).where(func.lower(colonne) == valeur.lower()))
        if res.first() is not None:
            raise ConflitCatalogue(message)
