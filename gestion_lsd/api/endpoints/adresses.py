from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.dependances_auth import fournir_utilisateur_optionnel
from gestion_lsd.api.schemas.adresses import (
    AdresseCreate,
    AdresseOut,
    AdresseUpdate,
    ReponseStatutZone,
    RequeteStatutZone,
    StatistiquesStatutOut,
    SuggestionOut,
    TarifCreate,
    TarifOut,
)
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.adresses import (
    AdresseEnDoublon,
    AdresseIntrouvable,
    DonneesInvalidesAdresse,
    ErreurAdresse,
    ServiceAdresses,
)


logger = logging.getLogger(__name__)

routeur_adresses_interne = APIRouter(
    prefix="/adresses",
    tags=["adresses_interne"],
    dependencies=[Depends(verifier_acces_interne)],
)


def _http(e: ErreurAdresse) -> HTTPException:
    if isinstance(e, AdresseIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AdresseEnDoublon):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DonneesInvalidesAdresse):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


@routeur_adresses_interne.get("", response_model=list[AdresseOut])
async def lister_adresses(
    departement: str | None = Query(default=None),
    inclure_inactives: bool = Query(default=False),
    q: str | None = Query(default=None, min_length=1),
    session: AsyncSession = Depends(fournir_session),
) -> list[AdresseOut]:
    service = ServiceAdresses(session)
    if q:
        return await service.rechercher(q)
    return await service.lister(departement=departement, inclure_inactives=inclure_inactives)


@routeur_adresses_interne.post("", response_model=AdresseOut, status_code=status.HTTP_201_CREATED)
async def creer_adresse(
    body: AdresseCreate,
    user: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> AdresseOut:
    try:
        return await ServiceAdresses(session).creer(
            nom=body.nom,
            departement=body.departement,
            commune=body.commune,
            arrondissement=body.arrondissement,
            quartier=body.quartier,
            latitude=body.latitude,
            longitude=body.longitude,
            actif=body.actif,
            cree_par=user.id if user else None,
        )
    except ErreurAdresse as e:
        raise _http(e) from e


@routeur_adresses_interne.get("/departements")
async def lister_departements(session: AsyncSession = Depends(fournir_session)) -> list[dict]:
    return await ServiceAdresses(session).lister_departements()


@routeur_adresses_interne.get("/arborescence")
async def arborescence(
    inclure_inactives: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> dict:
    return await ServiceAdresses(session).arborescence(inclure_inactives=inclure_inactives)


@routeur_adresses_interne.get("/suggestions/{niveau}", response_model=list[SuggestionOut])
async def suggestions(
    niveau: str,
    q: str = Query(default=""),
    departement: str | None = Query(default=None),
    commune: str | None = Query(default=None),
    arrondissement: str | None = Query(default=None),
    session: AsyncSession = Depends(fournir_session),
) -> list[SuggestionOut]:
    try:
        return await ServiceAdresses(session).suggestions(
            niveau,
            requete=q,
            departement=departement,
            commune=commune,
            arrondissement=arrondissement,
        )
    except ErreurAdresse as e:
        raise _http(e) from e


@routeur_adresses_interne.get("/statistiques", response_model=StatistiquesStatutOut)
async def statistiques_statut(
    departement: str | None = Query(default=None),
    session: AsyncSession = Depends(fournir_session),
) -> StatistiquesStatutOut:
    return await ServiceAdresses(session).statistiques_statut(departement=departement)


@routeur_adresses_interne.get("/doublons", response_model=list[list[AdresseOut]])
async def doublons(session: AsyncSession = Depends(fournir_session)) -> list[list[AdresseOut]]:
    return await ServiceAdresses(session).trouver_tous_les_doublons()


@routeur_adresses_interne.get("/tarifs-moyens")
async def tarifs_moyens(session: AsyncSession = Depends(fournir_session)) -> dict[str, int]:
    return await ServiceAdresses(session).tarifs_moyens_par_quartier()


@routeur_adresses_interne.post("/statut-zone", response_model=ReponseStatutZone)
async def statut_zone(
    body: RequeteStatutZone,
    session: AsyncSession = Depends(fournir_session),
) -> ReponseStatutZone:
    try:
        modifiees = await ServiceAdresses(session).basculer_statut_zone(
            actif=body.actif,
            departement=body.departement,
            commune=body.commune,
            arrondissement=body.arrondissement,
            quartier=body.quartier,
        )
    except ErreurAdresse as e:
        raise _http(e) from e
    return ReponseStatutZone(modifiees=modifiees)


@routeur_adresses_interne.get("/{adresse_id}", response_model=AdresseOut)
async def obtenir_adresse(adresse_id: UUID, session: AsyncSession = Depends(fournir_session)) -> AdresseOut:
    try:
        return await ServiceAdresses(session).obtenir(adresse_id)
    except ErreurAdresse as e:
        raise _http(e) from e


@routeur_adresses_interne.patch("/{adresse_id}", response_model=AdresseOut)
async def maj_adresse(
    adresse_id: UUID,
    body: AdresseUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> AdresseOut:
    try:
        return await ServiceAdresses(session).mettre_a_jour(adresse_id, **body.model_dump(exclude_unset=True))
    except ErreurAdresse as e:
        raise _http(e) from e


@routeur_adresses_interne.delete("/{adresse_id}", response_model=AdresseOut)
async def supprimer_adresse(adresse_id: UUID, session: AsyncSession = Depends(fournir_session)) -> AdresseOut:
    try:
        return await ServiceAdresses(session).supprimer(adresse_id)
    except ErreurAdresse as e:
        raise _http(e) from e


@routeur_adresses_interne.post("/{adresse_id}/basculer", response_model=AdresseOut)
async def basculer_statut(adresse_id: UUID, session: AsyncSession = Depends(fournir_session)) -> AdresseOut:
    try:
        return await ServiceAdresses(session).basculer_statut(adresse_id)
    except ErreurAdresse as e:
        raise _http(e) from e


@routeur_adresses_interne.get("/{adresse_id}/tarifs", response_model=list[TarifOut])
async def lister_tarifs(adresse_id: UUID, session: AsyncSession = Depends(fournir_session)) -> list[TarifOut]:
    try:
        return await ServiceAdresses(session).lister_tarifs(adresse_id)
    except ErreurAdresse as e:
        raise _http(e) from e


@routeur_adresses_interne.put("/{adresse_id}/tarifs", response_model=TarifOut)
async def definir_tarif(
    adresse_id: UUID,
    body: TarifCreate,
    session: AsyncSession = Depends(fournir_session),
) -> TarifOut:
    try:
        return await ServiceAdresses(session).definir_tarif(adresse_id, livreur_id=body.livreur_id, tarif=body.tarif)
    except ErreurAdresse as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        logger.info("adresse_tarif_conflit adresse_id=%s livreur_id=%s", adresse_id, body.livreur_id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Conflit: tarif déjà défini.") from e
