from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.schemas.catalogue import (
    BoissonCreate,
    BoissonOut,
    BoissonUpdate,
    ElementMenuComposeIn,
    IngredientCreate,
    IngredientOut,
    MenuComposeCreate,
    MenuComposeOut,
    MenuComposeUpdate,
    MenuCreate,
    MenuOut,
    MenuUpdate,
    QuantiteElementIn,
    RapportLotSupplementsOut,
    SupplementCreate,
    SupplementOut,
    SupplementUpdate,
    TotalSupplementsIn,
    TotalSupplementsOut,
)
from gestion_lsd.domaine.services.catalogue import (
    ConflitCatalogue,
    DonneesInvalidesCatalogue,
    ElementCatalogueIntrouvable,
    ElementDemande,
    ErreurCatalogue,
    ServiceCatalogue,
)


logger = logging.getLogger(__name__)

routeur_catalogue_interne = APIRouter(
    prefix="/catalogue",
    tags=["catalogue_interne"],
    dependencies=[Depends(verifier_acces_interne)],
)


def _http(e: ErreurCatalogue) -> HTTPException:
    if isinstance(e, ElementCatalogueIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ConflitCatalogue):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DonneesInvalidesCatalogue):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


def _conflit(evenement: str, denomination: str | None) -> HTTPException:
    logger.info("%s denomination=%s", evenement, denomination)
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Conflit: dénomination déjà utilisée.")


# ----------------------------------------------------------------------
# Ingrédients
# ----------------------------------------------------------------------


@routeur_catalogue_interne.get("/ingredients", response_model=list[IngredientOut])
async def lister_ingredients(
    inclure_inactifs: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[IngredientOut]:
    return await ServiceCatalogue(session).lister_ingredients(inclure_inactifs=inclure_inactifs)


@routeur_catalogue_interne.post("/ingredients", response_model=IngredientOut, status_code=status.HTTP_201_CREATED)
async def creer_ingredient(body: IngredientCreate, session: AsyncSession = Depends(fournir_session)) -> IngredientOut:
    try:
        return await ServiceCatalogue(session).creer_ingredient(**body.model_dump())
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_creer_ingredient_conflit", body.nom) from e


@routeur_catalogue_interne.delete("/ingredients/{ingredient_id}", response_model=IngredientOut)
async def desactiver_ingredient(ingredient_id: UUID, session: AsyncSession = Depends(fournir_session)) -> IngredientOut:
    try:
        return await ServiceCatalogue(session).desactiver_ingredient(ingredient_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


# ----------------------------------------------------------------------
# Menus
# ----------------------------------------------------------------------


@routeur_catalogue_interne.get("/menus", response_model=list[MenuOut])
async def lister_menus(
    inclure_inactifs: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[MenuOut]:
    return await ServiceCatalogue(session).lister_menus(inclure_inactifs=inclure_inactifs)


@routeur_catalogue_interne.post("/menus", response_model=MenuOut, status_code=status.HTTP_201_CREATED)
async def creer_menu(body: MenuCreate, session: AsyncSession = Depends(fournir_session)) -> MenuOut:
    try:
        return await ServiceCatalogue(session).creer_menu(**body.model_dump())
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_creer_menu_conflit", body.denomination) from e


@routeur_catalogue_interne.get("/menus/{menu_id}", response_model=MenuOut)
async def obtenir_menu(menu_id: UUID, session: AsyncSession = Depends(fournir_session)) -> MenuOut:
    try:
        return await ServiceCatalogue(session).obtenir_menu(menu_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.patch("/menus/{menu_id}", response_model=MenuOut)
async def maj_menu(menu_id: UUID, body: MenuUpdate, session: AsyncSession = Depends(fournir_session)) -> MenuOut:
    try:
        return await ServiceCatalogue(session).mettre_a_jour_menu(menu_id, **body.model_dump(exclude_unset=True))
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_maj_menu_conflit", body.denomination) from e


@routeur_catalogue_interne.delete("/menus/{menu_id}", response_model=MenuOut)
async def desactiver_menu(menu_id: UUID, session: AsyncSession = Depends(fournir_session)) -> MenuOut:
    try:
        return await ServiceCatalogue(session).desactiver_menu(menu_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


# ----------------------------------------------------------------------
# Boissons
# ----------------------------------------------------------------------


@routeur_catalogue_interne.get("/boissons", response_model=list[BoissonOut])
async def lister_boissons(
    inclure_inactifs: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[BoissonOut]:
    return await ServiceCatalogue(session).lister_boissons(inclure_inactifs=inclure_inactifs)


@routeur_catalogue_interne.post("/boissons", response_model=BoissonOut, status_code=status.HTTP_201_CREATED)
async def creer_boisson(body: BoissonCreate, session: AsyncSession = Depends(fournir_session)) -> BoissonOut:
    try:
        return await ServiceCatalogue(session).creer_boisson(**body.model_dump())
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_creer_boisson_conflit", body.denomination) from e


@routeur_catalogue_interne.get("/boissons/{boisson_id}", response_model=BoissonOut)
async def obtenir_boisson(boisson_id: UUID, session: AsyncSession = Depends(fournir_session)) -> BoissonOut:
    try:
        return await ServiceCatalogue(session).obtenir_boisson(boisson_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.patch("/boissons/{boisson_id}", response_model=BoissonOut)
async def maj_boisson(
    boisson_id: UUID,
    body: BoissonUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> BoissonOut:
    try:
        return await ServiceCatalogue(session).mettre_a_jour_boisson(boisson_id, **body.model_dump(exclude_unset=True))
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_maj_boisson_conflit", body.denomination) from e


@routeur_catalogue_interne.delete("/boissons/{boisson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def supprimer_boisson(boisson_id: UUID, session: AsyncSession = Depends(fournir_session)) -> None:
    """Suppression physique."""

    try:
        await ServiceCatalogue(session).supprimer_boisson(boisson_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.post("/boissons/{boisson_id}/desactiver", response_model=BoissonOut)
async def desactiver_boisson(boisson_id: UUID, session: AsyncSession = Depends(fournir_session)) -> BoissonOut:
    try:
        return await ServiceCatalogue(session).mettre_a_jour_boisson(boisson_id, actif=False)
    except ErreurCatalogue as e:
        raise _http(e) from e


# ----------------------------------------------------------------------
# Menus composés
# ----------------------------------------------------------------------


def _demandes(contenu: list[ElementMenuComposeIn] | None) -> list[ElementDemande] | None:
    if contenu is None:
        return None
    return [ElementDemande(e.type_article, e.article_id, e.quantite) for e in contenu]


@routeur_catalogue_interne.get("/menus-composes", response_model=list[MenuComposeOut])
async def lister_menus_composes(
    inclure_inactifs: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[MenuComposeOut]:
    return await ServiceCatalogue(session).lister_menus_composes(inclure_inactifs=inclure_inactifs)


@routeur_catalogue_interne.post("/menus-composes", response_model=MenuComposeOut, status_code=status.HTTP_201_CREATED)
async def creer_menu_compose(body: MenuComposeCreate, session: AsyncSession = Depends(fournir_session)) -> MenuComposeOut:
    try:
        return await ServiceCatalogue(session).creer_menu_compose(
            denomination=body.denomination,
            prix=body.prix,
            description=body.description,
            contenu=_demandes(body.contenu),
        )
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_creer_menu_compose_conflit", body.denomination) from e


@routeur_catalogue_interne.get("/menus-composes/{menu_compose_id}", response_model=MenuComposeOut)
async def obtenir_menu_compose(menu_compose_id: UUID, session: AsyncSession = Depends(fournir_session)) -> MenuComposeOut:
    try:
        return await ServiceCatalogue(session).obtenir_menu_compose(menu_compose_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.patch("/menus-composes/{menu_compose_id}", response_model=MenuComposeOut)
async def maj_menu_compose(
    menu_compose_id: UUID,
    body: MenuComposeUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> MenuComposeOut:
    champs = body.model_dump(exclude_unset=True, exclude={"contenu"})
    try:
        return await ServiceCatalogue(session).mettre_a_jour_menu_compose(
            menu_compose_id, contenu=_demandes(body.contenu), **champs
        )
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_maj_menu_compose_conflit", body.denomination) from e


@routeur_catalogue_interne.delete("/menus-composes/{menu_compose_id}", response_model=MenuComposeOut)
async def desactiver_menu_compose(
    menu_compose_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> MenuComposeOut:
    try:
        return await ServiceCatalogue(session).desactiver_menu_compose(menu_compose_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.post("/menus-composes/{menu_compose_id}/elements", response_model=MenuComposeOut)
async def ajouter_element(
    menu_compose_id: UUID,
    body: ElementMenuComposeIn,
    session: AsyncSession = Depends(fournir_session),
) -> MenuComposeOut:
    try:
        return await ServiceCatalogue(session).ajouter_element(
            menu_compose_id, type_article=body.type_article, article_id=body.article_id, quantite=body.quantite
        )
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.put("/menus-composes/{menu_compose_id}/elements", response_model=MenuComposeOut)
async def modifier_quantite_element(
    menu_compose_id: UUID,
    body: QuantiteElementIn,
    session: AsyncSession = Depends(fournir_session),
) -> MenuComposeOut:
    """Une quantité < 1 retire l’article."""

    try:
        return await ServiceCatalogue(session).modifier_quantite_element(
            menu_compose_id, type_article=body.type_article, article_id=body.article_id, quantite=body.quantite
        )
    except ErreurCatalogue as e:
        raise _http(e) from e


# ----------------------------------------------------------------------
# Suppléments
# ----------------------------------------------------------------------


@routeur_catalogue_interne.get("/supplements", response_model=list[SupplementOut])
async def lister_supplements(
    groupe: str | None = Query(default=None),
    inclure_inactifs: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[SupplementOut]:
    return await ServiceCatalogue(session).lister_supplements(groupe=groupe, inclure_inactifs=inclure_inactifs)


@routeur_catalogue_interne.post("/supplements", response_model=SupplementOut, status_code=status.HTTP_201_CREATED)
async def creer_supplement(body: SupplementCreate, session: AsyncSession = Depends(fournir_session)) -> SupplementOut:
    try:
        return await ServiceCatalogue(session).creer_supplement(**body.model_dump())
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_creer_supplement_conflit", body.denomination) from e


@routeur_catalogue_interne.post("/supplements/lot", response_model=RapportLotSupplementsOut)
async def creer_supplements_lot(
    body: list[SupplementCreate],
    session: AsyncSession = Depends(fournir_session),
) -> RapportLotSupplementsOut:
    return await ServiceCatalogue(session).creer_supplements_lot([s.model_dump() for s in body])


@routeur_catalogue_interne.post("/supplements/total", response_model=TotalSupplementsOut)
async def calculer_total_supplements(
    body: TotalSupplementsIn,
    session: AsyncSession = Depends(fournir_session),
) -> TotalSupplementsOut:
    total = await ServiceCatalogue(session).calculer_total_supplements(body.supplement_ids)
    return TotalSupplementsOut(total=total)


@routeur_catalogue_interne.patch("/supplements/{supplement_id}", response_model=SupplementOut)
async def maj_supplement(
    supplement_id: UUID,
    body: SupplementUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> SupplementOut:
    try:
        return await ServiceCatalogue(session).mettre_a_jour_supplement(
            supplement_id, **body.model_dump(exclude_unset=True)
        )
    except ErreurCatalogue as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        raise _conflit("catalogue_maj_supplement_conflit", body.denomination) from e


@routeur_catalogue_interne.post("/supplements/{supplement_id}/desactiver", response_model=SupplementOut)
async def desactiver_supplement(supplement_id: UUID, session: AsyncSession = Depends(fournir_session)) -> SupplementOut:
    try:
        return await ServiceCatalogue(session).desactiver_supplement(supplement_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.post("/supplements/{supplement_id}/reactiver", response_model=SupplementOut)
async def reactiver_supplement(supplement_id: UUID, session: AsyncSession = Depends(fournir_session)) -> SupplementOut:
    try:
        return await ServiceCatalogue(session).reactiver_supplement(supplement_id)
    except ErreurCatalogue as e:
        raise _http(e) from e


@routeur_catalogue_interne.delete("/supplements/{supplement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def supprimer_supplement(supplement_id: UUID, session: AsyncSession = Depends(fournir_session)) -> None:
    """Suppression physique."""

    try:
        await ServiceCatalogue(session).supprimer_supplement(supplement_id)
    except ErreurCatalogue as e:
        raise _http(e) from e
