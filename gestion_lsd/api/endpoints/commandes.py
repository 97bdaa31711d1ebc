from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.dependances_auth import fournir_utilisateur_optionnel
from gestion_lsd.api.schemas.commandes import (
    CommandeOut,
    RequeteCommande,
    RequeteStatutCommande,
    StatistiquesJourOut,
)
from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.enums.types import StatutCommande, TypeCommande
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.commandes import (
    CommandeIntrouvable,
    DonneesInvalidesCommande,
    ErreurCommande,
    LigneDemandee,
    PaiementDemande,
    ServiceCommandes,
    StatutCommandeInvalide,
)
from gestion_lsd.domaine.services.exports import csv_statistiques_ventes


logger = logging.getLogger(__name__)

routeur_commandes_interne = APIRouter(
    prefix="/commandes",
    tags=["commandes_interne"],
    dependencies=[Depends(verifier_acces_interne)],
)


def _http(e: ErreurCommande) -> HTTPException:
    if isinstance(e, CommandeIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, StatutCommandeInvalide):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DonneesInvalidesCommande):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


@routeur_commandes_interne.post("", response_model=CommandeOut, status_code=status.HTTP_201_CREATED)
async def creer_commande(
    requete: RequeteCommande,
    vendeur: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> CommandeOut:
    """Création d’une commande.

    - Prix et dénominations lus dans le catalogue (le client n’envoie que
      les identifiants et quantités)
    - Vendeur = utilisateur du JWT s’il est fourni
    """

    try:
        return await ServiceCommandes(session).creer(
            type_commande=requete.type_commande,
            sexe=requete.sexe,
            client_nom=requete.client_nom,
            client_telephone=requete.client_telephone,
            point_de_vente_id=requete.point_de_vente_id,
            lignes=[
                LigneDemandee(type_article=l.type_article, article_id=l.article_id, quantite=l.quantite)
                for l in requete.lignes
            ],
            paiement=PaiementDemande(**requete.paiement.model_dump()),
            vendeur=vendeur,
            adresse_livraison_id=requete.adresse_livraison_id,
            personne_a_livrer=requete.personne_a_livrer,
            telephone_a_livrer=requete.telephone_a_livrer,
            livraison_prevue_le=requete.livraison_prevue_le,
            indication_adresse=requete.indication_adresse,
        )
    except ErreurCommande as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        logger.info("commande_creer_conflit type=%s sexe=%s", requete.type_commande.value, requete.sexe)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Conflit de numérotation, réessayer.",
        ) from e


@routeur_commandes_interne.get("", response_model=list[CommandeOut])
async def lister_commandes(
    jour: date | None = Query(default=None),
    type_commande: TypeCommande | None = Query(default=None),
    statut: StatutCommande | None = Query(default=None),
    point_de_vente_id: UUID | None = Query(default=None),
    inclure_inactives: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[CommandeOut]:
    return await ServiceCommandes(session).lister(
        jour=jour,
        type_commande=type_commande,
        statut=statut,
        point_de_vente_id=point_de_vente_id,
        inclure_inactives=inclure_inactives,
    )


@routeur_commandes_interne.get("/statistiques", response_model=StatistiquesJourOut)
async def statistiques_jour(
    jour: date | None = Query(default=None),
    point_de_vente_id: UUID | None = Query(default=None),
    session: AsyncSession = Depends(fournir_session),
) -> StatistiquesJourOut:
    return await ServiceCommandes(session).statistiques_jour(
        jour or maintenant_utc().date(),
        point_de_vente_id=point_de_vente_id,
    )


@routeur_commandes_interne.get("/statistiques.csv")
async def exporter_statistiques_jour(
    jour: date | None = Query(default=None),
    point_de_vente_id: UUID | None = Query(default=None),
    session: AsyncSession = Depends(fournir_session),
) -> Response:
    jour = jour or maintenant_utc().date()
    stats = await ServiceCommandes(session).statistiques_jour(jour, point_de_vente_id=point_de_vente_id)
    return Response(
        content=csv_statistiques_ventes(stats),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="statistiques_ventes_{jour.isoformat()}.csv"'},
    )


@routeur_commandes_interne.get("/{code}", response_model=CommandeOut)
async def obtenir_commande(code: str, session: AsyncSession = Depends(fournir_session)) -> CommandeOut:
    try:
        return await ServiceCommandes(session).obtenir(code)
    except ErreurCommande as e:
        raise _http(e) from e


@routeur_commandes_interne.post("/{code}/statut", response_model=CommandeOut)
async def changer_statut(
    code: str,
    requete: RequeteStatutCommande,
    session: AsyncSession = Depends(fournir_session),
) -> CommandeOut:
    try:
        return await ServiceCommandes(session).changer_statut(code, requete.statut)
    except ErreurCommande as e:
        raise _http(e) from e


@routeur_commandes_interne.delete("/{code}", response_model=CommandeOut)
async def desactiver_commande(code: str, session: AsyncSession = Depends(fournir_session)) -> CommandeOut:
    try:
        return await ServiceCommandes(session).desactiver(code)
    except ErreurCommande as e:
        raise _http(e) from e
