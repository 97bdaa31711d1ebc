from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.dependances_auth import fournir_utilisateur_optionnel
from gestion_lsd.api.schemas.livraisons import (
    LivraisonCreate,
    LivraisonOut,
    LivraisonUpdate,
    RequeteAnnulation,
    RequeteAssignation,
    RequeteStatutLivraison,
    StatistiquesLivraisonsOut,
)
from gestion_lsd.core.temps import en_utc, maintenant_utc
from gestion_lsd.domaine.enums.types import StatutLivraison
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.exports import csv_statistiques_livraisons
from gestion_lsd.domaine.services.livraisons import (
    ConflitLivraison,
    DonneesInvalidesLivraison,
    ErreurLivraison,
    LivraisonIntrouvable,
    ServiceLivraisons,
    TransitionInvalideLivraison,
)


logger = logging.getLogger(__name__)

routeur_livraisons_interne = APIRouter(
    prefix="/livraisons",
    tags=["livraisons_interne"],
    dependencies=[Depends(verifier_acces_interne)],
)


def _http(e: ErreurLivraison) -> HTTPException:
    if isinstance(e, LivraisonIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (ConflitLivraison, TransitionInvalideLivraison)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DonneesInvalidesLivraison):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


@routeur_livraisons_interne.post("", response_model=LivraisonOut, status_code=status.HTTP_201_CREATED)
async def creer_livraison(
    body: LivraisonCreate,
    user: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).creer(
            commande_code=body.commande_code,
            priorite=body.priorite,
            notes=body.notes,
            cree_par=user.id if user else None,
        )
    except ErreurLivraison as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        logger.info("livraison_creer_conflit commande=%s", body.commande_code)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Une livraison existe déjà pour la commande {body.commande_code}.",
        ) from e


@routeur_livraisons_interne.get("", response_model=list[LivraisonOut])
async def lister_livraisons(
    statut: StatutLivraison | None = Query(default=None),
    livreur_id: UUID | None = Query(default=None),
    en_cours: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[LivraisonOut]:
    service = ServiceLivraisons(session)
    if en_cours:
        return await service.lister_en_cours()
    if livreur_id is not None:
        return await service.lister_par_livreur(livreur_id)
    if statut is not None:
        return await service.lister_par_statut(statut)
    return await service.lister()


@routeur_livraisons_interne.get("/statistiques", response_model=StatistiquesLivraisonsOut)
async def statistiques(
    debut: datetime | None = Query(default=None),
    fin: datetime | None = Query(default=None),
    session: AsyncSession = Depends(fournir_session),
) -> StatistiquesLivraisonsOut:
    """Par défaut : les 7 derniers jours."""

    debut, fin = _periode(debut, fin)
    return await ServiceLivraisons(session).statistiques(debut=debut, fin=fin)


@routeur_livraisons_interne.get("/statistiques.csv")
async def exporter_statistiques(
    debut: datetime | None = Query(default=None),
    fin: datetime | None = Query(default=None),
    session: AsyncSession = Depends(fournir_session),
) -> Response:
    debut, fin = _periode(debut, fin)
    stats = await ServiceLivraisons(session).statistiques(debut=debut, fin=fin)
    periode = f"{debut.date().isoformat()}_{fin.date().isoformat()}"
    return Response(
        content=csv_statistiques_livraisons(stats, periode=periode),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="statistiques_livraisons_{periode}.csv"'},
    )


def _periode(debut: datetime | None, fin: datetime | None) -> tuple[datetime, datetime]:
    fin = en_utc(fin) if fin else maintenant_utc()
    debut = en_utc(debut) if debut else fin - timedelta(days=7)
    if debut >= fin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="debut doit précéder fin.")
    return debut, fin


@routeur_livraisons_interne.get("/commande/{commande_code}", response_model=LivraisonOut)
async def livraison_de_commande(commande_code: str, session: AsyncSession = Depends(fournir_session)) -> LivraisonOut:
    livraison = await ServiceLivraisons(session).par_commande_code(commande_code)
    if livraison is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Livraison introuvable.")
    return livraison


@routeur_livraisons_interne.get("/{livraison_id}", response_model=LivraisonOut)
async def obtenir_livraison(livraison_id: UUID, session: AsyncSession = Depends(fournir_session)) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).obtenir(livraison_id)
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.patch("/{livraison_id}", response_model=LivraisonOut)
async def maj_livraison(
    livraison_id: UUID,
    body: LivraisonUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).mettre_a_jour(livraison_id, **body.model_dump(exclude_unset=True))
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.delete("/{livraison_id}", status_code=status.HTTP_204_NO_CONTENT)
async def supprimer_livraison(livraison_id: UUID, session: AsyncSession = Depends(fournir_session)) -> None:
    """Suppression physique."""

    try:
        await ServiceLivraisons(session).supprimer(livraison_id)
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.post("/{livraison_id}/assigner", response_model=LivraisonOut)
async def assigner(
    livraison_id: UUID,
    body: RequeteAssignation,
    session: AsyncSession = Depends(fournir_session),
) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).assigner_livreur(livraison_id, livreur_id=body.livreur_id)
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.post("/{livraison_id}/recuperer", response_model=LivraisonOut)
async def recuperer(livraison_id: UUID, session: AsyncSession = Depends(fournir_session)) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).marquer_colis_recupere(livraison_id)
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.post("/{livraison_id}/demarrer", response_model=LivraisonOut)
async def demarrer(livraison_id: UUID, session: AsyncSession = Depends(fournir_session)) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).demarrer(livraison_id)
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.post("/{livraison_id}/terminer", response_model=LivraisonOut)
async def terminer(livraison_id: UUID, session: AsyncSession = Depends(fournir_session)) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).terminer(livraison_id)
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.post("/{livraison_id}/annuler", response_model=LivraisonOut)
async def annuler(
    livraison_id: UUID,
    body: RequeteAnnulation,
    session: AsyncSession = Depends(fournir_session),
) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).annuler(livraison_id, motif=body.motif)
    except ErreurLivraison as e:
        raise _http(e) from e


@routeur_livraisons_interne.post("/{livraison_id}/statut", response_model=LivraisonOut)
async def changer_statut(
    livraison_id: UUID,
    body: RequeteStatutLivraison,
    session: AsyncSession = Depends(fournir_session),
) -> LivraisonOut:
    try:
        return await ServiceLivraisons(session).changer_statut(
            livraison_id,
            body.statut,
            livreur_id=body.livreur_id,
            motif=body.motif,
        )
    except ErreurLivraison as e:
        raise _http(e) from e
