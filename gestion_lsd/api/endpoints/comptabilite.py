from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.api.dependances import fournir_session, verifier_acces_interne
from gestion_lsd.api.dependances_auth import (
    fournir_utilisateur_courant,
    fournir_utilisateur_optionnel,
    verifier_roles_requis,
)
from gestion_lsd.api.schemas.comptabilite import (
    BalanceOut,
    ClasseBalanceOut,
    CompteCreate,
    CompteGrandLivreOut,
    CompteOut,
    CompteUpdate,
    GrandLivreOut,
    OperationCreate,
    OperationOut,
    ReponseClotures,
    ResumeSemaineOut,
    SemaineOut,
    StatutClotureOut,
    TresorerieCreate,
    TresorerieOut,
)
from gestion_lsd.domaine.enums.types import CodeRole, TypeCompteComptable
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.services.comptabilite import (
    ConflitComptabilite,
    DonneesInvalidesComptabilite,
    ElementComptableIntrouvable,
    ErreurComptabilite,
    SemaineCloturee,
    ServiceComptabilite,
)


logger = logging.getLogger(__name__)

routeur_comptabilite_interne = APIRouter(
    prefix="/comptabilite",
    tags=["comptabilite_interne"],
    dependencies=[Depends(verifier_acces_interne)],
)


def _http(e: ErreurComptabilite) -> HTTPException:
    if isinstance(e, ElementComptableIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (ConflitComptabilite, SemaineCloturee)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DonneesInvalidesComptabilite):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne.")  # pragma: no cover


# ------------------------------------------------------------------
# Comptes (plan OHADA)
# ------------------------------------------------------------------


@routeur_comptabilite_interne.get("/comptes", response_model=list[CompteOut])
async def lister_comptes(
    type_compte: TypeCompteComptable | None = Query(default=None),
    inclure_inactifs: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[CompteOut]:
    return await ServiceComptabilite(session).lister_comptes(type_compte=type_compte, inclure_inactifs=inclure_inactifs)


@routeur_comptabilite_interne.post("/comptes", response_model=CompteOut, status_code=status.HTTP_201_CREATED)
async def creer_compte(body: CompteCreate, session: AsyncSession = Depends(fournir_session)) -> CompteOut:
    try:
        return await ServiceComptabilite(session).creer_compte(**body.model_dump())
    except ErreurComptabilite as e:
        raise _http(e) from e
    except IntegrityError as e:
        await session.rollback()
        logger.info("compte_creer_conflit code_ohada=%s", body.code_ohada)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Le compte {body.code_ohada} existe déjà.",
        ) from e


@routeur_comptabilite_interne.patch("/comptes/{compte_id}", response_model=CompteOut)
async def maj_compte(
    compte_id: UUID,
    body: CompteUpdate,
    session: AsyncSession = Depends(fournir_session),
) -> CompteOut:
    try:
        return await ServiceComptabilite(session).mettre_a_jour_compte(compte_id, **body.model_dump(exclude_unset=True))
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.delete("/comptes/{compte_id}", response_model=CompteOut)
async def desactiver_compte(compte_id: UUID, session: AsyncSession = Depends(fournir_session)) -> CompteOut:
    try:
        return await ServiceComptabilite(session).desactiver_compte(compte_id)
    except ErreurComptabilite as e:
        raise _http(e) from e


# ------------------------------------------------------------------
# Trésoreries
# ------------------------------------------------------------------


@routeur_comptabilite_interne.get("/tresoreries", response_model=list[TresorerieOut])
async def lister_tresoreries(
    inclure_inactives: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[TresorerieOut]:
    return await ServiceComptabilite(session).lister_tresoreries(inclure_inactives=inclure_inactives)


@routeur_comptabilite_interne.post("/tresoreries", response_model=TresorerieOut, status_code=status.HTTP_201_CREATED)
async def creer_tresorerie(body: TresorerieCreate, session: AsyncSession = Depends(fournir_session)) -> TresorerieOut:
    try:
        return await ServiceComptabilite(session).creer_tresorerie(**body.model_dump())
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.delete("/tresoreries/{tresorerie_id}", response_model=TresorerieOut)
async def desactiver_tresorerie(tresorerie_id: UUID, session: AsyncSession = Depends(fournir_session)) -> TresorerieOut:
    try:
        return await ServiceComptabilite(session).desactiver_tresorerie(tresorerie_id)
    except ErreurComptabilite as e:
        raise _http(e) from e


# ------------------------------------------------------------------
# Opérations
# ------------------------------------------------------------------


@routeur_comptabilite_interne.post("/operations", response_model=OperationOut, status_code=status.HTTP_201_CREATED)
async def enregistrer_operation(
    body: OperationCreate,
    user: User | None = Depends(fournir_utilisateur_optionnel),
    session: AsyncSession = Depends(fournir_session),
) -> OperationOut:
    try:
        return await ServiceComptabilite(session).enregistrer_operation(
            **body.model_dump(),
            cree_par=user.id if user else None,
        )
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.get("/operations", response_model=list[OperationOut])
async def lister_operations(
    annee: int = Query(..., ge=2000, le=2100),
    code: str | None = Query(default=None, pattern=r"^S\d{2}$"),
    inclure_inactives: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> list[OperationOut]:
    return await ServiceComptabilite(session).lister_operations(
        annee=annee,
        code=code,
        inclure_inactives=inclure_inactives,
    )


@routeur_comptabilite_interne.delete("/operations/{operation_id}", response_model=OperationOut)
async def desactiver_operation(operation_id: UUID, session: AsyncSession = Depends(fournir_session)) -> OperationOut:
    try:
        return await ServiceComptabilite(session).desactiver_operation(operation_id)
    except ErreurComptabilite as e:
        raise _http(e) from e


# ------------------------------------------------------------------
# Semaines et clôtures
# ------------------------------------------------------------------


@routeur_comptabilite_interne.get("/semaines/{annee}", response_model=list[SemaineOut])
async def lister_semaines(annee: int, session: AsyncSession = Depends(fournir_session)) -> list[SemaineOut]:
    return await ServiceComptabilite(session).lister_semaines(annee)


@routeur_comptabilite_interne.get("/semaines/{annee}/non-cloturees", response_model=list[SemaineOut])
async def semaines_non_cloturees(annee: int, session: AsyncSession = Depends(fournir_session)) -> list[SemaineOut]:
    return await ServiceComptabilite(session).semaines_non_cloturees(annee)


@routeur_comptabilite_interne.get("/semaines/{annee}/cloturees", response_model=list[SemaineOut])
async def semaines_cloturees(annee: int, session: AsyncSession = Depends(fournir_session)) -> list[SemaineOut]:
    return await ServiceComptabilite(session).semaines_cloturees(annee)


@routeur_comptabilite_interne.post("/semaines/{annee}/cloturer", response_model=ReponseClotures)
async def cloturer_annee(annee: int, session: AsyncSession = Depends(fournir_session)) -> ReponseClotures:
    semaines = await ServiceComptabilite(session).cloturer_annee(annee)
    return ReponseClotures(annee=annee, semaines=semaines)


@routeur_comptabilite_interne.post("/semaines/{annee}/auto-cloture", response_model=ReponseClotures)
async def auto_cloture(annee: int, session: AsyncSession = Depends(fournir_session)) -> ReponseClotures:
    semaines = await ServiceComptabilite(session).verifier_auto_cloture(annee)
    return ReponseClotures(annee=annee, semaines=semaines)


@routeur_comptabilite_interne.get("/semaines/{annee}/{code}/statut", response_model=StatutClotureOut)
async def statut_cloture(annee: int, code: str, session: AsyncSession = Depends(fournir_session)) -> StatutClotureOut:
    return await ServiceComptabilite(session).statut_cloture(annee, code)


@routeur_comptabilite_interne.get("/semaines/{annee}/{code}/resume", response_model=ResumeSemaineOut)
async def resume_semaine(annee: int, code: str, session: AsyncSession = Depends(fournir_session)) -> ResumeSemaineOut:
    try:
        return await ServiceComptabilite(session).resume_semaine(annee, code)
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.post("/semaines/{annee}/{code}/cloturer", response_model=SemaineOut)
async def cloturer_semaine(annee: int, code: str, session: AsyncSession = Depends(fournir_session)) -> SemaineOut:
    try:
        return await ServiceComptabilite(session).cloturer_semaine(annee, code)
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.post(
    "/semaines/{annee}/{code}/decloturer",
    response_model=SemaineOut,
    dependencies=[Depends(verifier_roles_requis(CodeRole.ADMIN.value))],
)
async def decloturer_semaine(
    annee: int,
    code: str,
    admin: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> SemaineOut:
    """Réservé aux administrateurs, tracé dans le journal d'audit."""

    try:
        return await ServiceComptabilite(session).decloturer_semaine(annee, code, par_user_id=admin.id)
    except ErreurComptabilite as e:
        raise _http(e) from e


# ------------------------------------------------------------------
# États : grand livre et balance
# ------------------------------------------------------------------


@routeur_comptabilite_interne.get("/grand-livre", response_model=GrandLivreOut)
async def grand_livre(
    debut: date = Query(...),
    fin: date = Query(...),
    classe: str | None = Query(default=None, pattern=r"^[1-9]$"),
    session: AsyncSession = Depends(fournir_session),
) -> GrandLivreOut:
    try:
        return await ServiceComptabilite(session).grand_livre(debut, fin, classe=classe)
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.get("/grand-livre/{compte_id}", response_model=CompteGrandLivreOut)
async def grand_livre_compte(
    compte_id: UUID,
    debut: date = Query(...),
    fin: date = Query(...),
    session: AsyncSession = Depends(fournir_session),
) -> CompteGrandLivreOut:
    try:
        return await ServiceComptabilite(session).grand_livre_compte(compte_id, debut, fin)
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.get("/balance", response_model=BalanceOut)
async def balance(
    debut: date = Query(...),
    fin: date = Query(...),
    session: AsyncSession = Depends(fournir_session),
) -> BalanceOut:
    try:
        return await ServiceComptabilite(session).balance(debut, fin)
    except ErreurComptabilite as e:
        raise _http(e) from e


@routeur_comptabilite_interne.get("/balance/classes", response_model=list[ClasseBalanceOut])
async def balance_par_classe(
    debut: date = Query(...),
    fin: date = Query(...),
    session: AsyncSession = Depends(fournir_session),
) -> list[ClasseBalanceOut]:
    try:
        return await ServiceComptabilite(session).balance_par_classe(debut, fin)
    except ErreurComptabilite as e:
        raise _http(e) from e
