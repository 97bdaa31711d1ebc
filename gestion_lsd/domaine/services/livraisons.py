from __future__ import annotations

"""Livraisons : machine d'état.

Le statut ne change que par les méthodes de `ServiceLivraisons`, qui
consultent toutes `TRANSITIONS_LIVRAISON`. `livree` et `annulee` sont
terminaux.
"""

import logging
import statistics
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.nombres import arrondir
from gestion_lsd.core.temps import en_utc, maintenant_utc
from gestion_lsd.domaine.enums.types import (
    FonctionPersonnel,
    PrioriteLivraison,
    StatutCommande,
    StatutLivraison,
    TypeCommande,
)
from gestion_lsd.domaine.modeles.adresses import Adresse
from gestion_lsd.domaine.modeles.commandes import Commande
from gestion_lsd.domaine.modeles.livraisons import Livraison
from gestion_lsd.domaine.services.notifications import compte_du_membre, notifier_utilisateur
from gestion_lsd.domaine.services.personnel import MembrePersonnelIntrouvable, ServicePersonnel


logger = logging.getLogger(__name__)


TRANSITIONS_LIVRAISON: dict[StatutLivraison, frozenset[StatutLivraison]] = {
    StatutLivraison.EN_ATTENTE: frozenset({StatutLivraison.ASSIGNEE, StatutLivraison.ANNULEE}),
    # réassignation possible tant que le colis n'est pas récupéré
    StatutLivraison.ASSIGNEE: frozenset(
        {StatutLivraison.ASSIGNEE, StatutLivraison.RECUPEREE, StatutLivraison.ANNULEE}
    ),
    StatutLivraison.RECUPEREE: frozenset({StatutLivraison.EN_COURS, StatutLivraison.ANNULEE}),
    StatutLivraison.EN_COURS: frozenset({StatutLivraison.LIVREE, StatutLivraison.ANNULEE}),
    StatutLivraison.LIVREE: frozenset(),
    StatutLivraison.ANNULEE: frozenset(),
}

STATUTS_TERMINAUX = frozenset({StatutLivraison.LIVREE, StatutLivraison.ANNULEE})


class ErreurLivraison(Exception):
    """Erreur générique livraisons."""


class DonneesInvalidesLivraison(ErreurLivraison):
    pass


class LivraisonIntrouvable(ErreurLivraison):
    pass


class ConflitLivraison(ErreurLivraison):
    pass


class TransitionInvalideLivraison(ErreurLivraison):
    def __init__(self, depuis: StatutLivraison, vers: StatutLivraison) -> None:
        autorises = sorted(s.value for s in TRANSITIONS_LIVRAISON[depuis])
        super().__init__(
            f"Transition interdite : {depuis.value} -> {vers.value} (autorisées : {autorises or 'aucune'})."
        )
        self.depuis = depuis
        self.vers = vers


def transition_autorisee(depuis: StatutLivraison, vers: StatutLivraison) -> bool:
    return vers in TRANSITIONS_LIVRAISON[depuis]


@dataclass(frozen=True)
class DelaisLivraison:
    moyen_minutes: float | None
    median_minutes: float | None
    min_minutes: float | None
    max_minutes: float | None


@dataclass
class StatistiquesLivraisons:
    total: int = 0
    livrees: int = 0
    annulees: int = 0
    en_cours: int = 0
    taux_livraison: float = 0.0
    delais: DelaisLivraison = field(default_factory=lambda: DelaisLivraison(None, None, None, None))
    par_commune: dict[str, int] = field(default_factory=dict)


def calculer_delais(minutes: list[float]) -> DelaisLivraison:
    if not minutes:
        return DelaisLivraison(None, None, None, None)
    return DelaisLivraison(
        moyen_minutes=arrondir(statistics.fmean(minutes), 1),
        median_minutes=arrondir(statistics.median(minutes), 1),
        min_minutes=arrondir(min(minutes), 1),
        max_minutes=arrondir(max(minutes), 1),
    )


class ServiceLivraisons:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def creer(
        self,
        *,
        commande_code: str,
        priorite: PrioriteLivraison = PrioriteLivraison.NORMALE,
        notes: str | None = None,
        cree_par: UUID | None = None,
    ) -> Livraison:
        commande = (
            await self._session.execute(select(Commande).where(Commande.code == commande_code))
        ).scalar_one_or_none()
        if commande is None or not commande.actif:
            raise DonneesInvalidesLivraison(f"Commande {commande_code} introuvable.")
        if commande.type_commande != TypeCommande.A_LIVRER:
            raise DonneesInvalidesLivraison("Seule une commande à livrer peut donner lieu à une livraison.")
        if commande.statut == StatutCommande.ANNULEE:
            raise DonneesInvalidesLivraison("La commande est annulée.")

        existante = await self.par_commande_code(commande_code)
        if existante is not None:
            raise ConflitLivraison(f"Une livraison existe déjà pour la commande {commande_code}.")

        livraison = Livraison(
            commande_code=commande_code,
            statut=StatutLivraison.EN_ATTENTE,
            priorite=priorite,
            adresse_id=commande.adresse_livraison_id,
            client_nom=commande.personne_a_livrer or commande.client_nom,
            client_telephone=commande.telephone_a_livrer or commande.client_telephone,
            colis_recupere=False,
            notes=notes,
            cree_par=cree_par,
        )
        self._session.add(livraison)
        await self._session.commit()
        await self._session.refresh(livraison)

        logger.info("livraison_creee livraison_id=%s commande=%s", livraison.id, commande_code)
        return livraison

    async def obtenir(self, livraison_id: UUID) -> Livraison:
        livraison = await self._session.get(Livraison, livraison_id)
        if livraison is None:
            raise LivraisonIntrouvable("Livraison introuvable.")
        return livraison

    async def assigner_livreur(
        self,
        livraison_id: UUID,
        *,
        livreur_id: UUID,
        maintenant: datetime | None = None,
    ) -> Livraison:
        livraison = await self.obtenir(livraison_id)
        self._verifier_transition(livraison, StatutLivraison.ASSIGNEE)

        try:
            livreur = await ServicePersonnel(self._session).obtenir_actif(livreur_id, fonction=FonctionPersonnel.LIVREUR)
        except MembrePersonnelIntrouvable as e:
            raise DonneesInvalidesLivraison(str(e)) from e

        livraison.livreur_id = livreur.id
        livraison.livreur_nom = livreur.nom_complet
        livraison.statut = StatutLivraison.ASSIGNEE
        livraison.assignee_le = maintenant or maintenant_utc()

        compte = await compte_du_membre(self._session, livreur)
        if compte is not None:
            await notifier_utilisateur(
                self._session,
                user_id=compte.id,
                message=f"Livraison {livraison.commande_code} assignée (client : {livraison.client_nom or '-'}).",
            )
        else:
            logger.info("notification_livreur_ignoree livreur_id=%s raison=aucun_compte", livreur.id)
        await self._session.commit()

        logger.info("livraison_assignee livraison_id=%s livreur_id=%s", livraison.id, livreur.id)
        return livraison

    async def marquer_colis_recupere(self, livraison_id: UUID, *, maintenant: datetime | None = None) -> Livraison:
        livraison = await self.obtenir(livraison_id)
        if livraison.livreur_id is None:
            raise DonneesInvalidesLivraison("Aucun livreur assigné.")
        self._verifier_transition(livraison, StatutLivraison.RECUPEREE)

        livraison.colis_recupere = True
        livraison.statut = StatutLivraison.RECUPEREE
        livraison.recuperee_le = maintenant or maintenant_utc()
        await self._session.commit()

        logger.info("livraison_colis_recupere livraison_id=%s", livraison.id)
        return livraison

    async def demarrer(self, livraison_id: UUID, *, maintenant: datetime | None = None) -> Livraison:
        livraison = await self.obtenir(livraison_id)
        self._verifier_transition(livraison, StatutLivraison.EN_COURS)

        livraison.statut = StatutLivraison.EN_COURS
        livraison.demarree_le = maintenant or maintenant_utc()
        await self._session.commit()

        logger.info("livraison_demarree livraison_id=%s", livraison.id)
        return livraison

    async def terminer(self, livraison_id: UUID, *, maintenant: datetime | None = None) -> Livraison:
        """Livraison effectuée : la commande associée passe aussi `livree`."""

        livraison = await self.obtenir(livraison_id)
        self._verifier_transition(livraison, StatutLivraison.LIVREE)

        livraison.statut = StatutLivraison.LIVREE
        livraison.livree_le = maintenant or maintenant_utc()

        commande = (
            await self._session.execute(select(Commande).where(Commande.code == livraison.commande_code))
        ).scalar_one()
        if commande.statut != StatutCommande.ANNULEE:
            commande.statut = StatutCommande.LIVREE

        await self._session.commit()

        logger.info("livraison_terminee livraison_id=%s commande=%s", livraison.id, livraison.commande_code)
        return livraison

    async def annuler(
        self,
        livraison_id: UUID,
        *,
        motif: str | None = None,
        maintenant: datetime | None = None,
    ) -> Livraison:
        livraison = await self.obtenir(livraison_id)
        self._verifier_transition(livraison, StatutLivraison.ANNULEE)

        livraison.statut = StatutLivraison.ANNULEE
        livraison.motif_annulation = motif
        livraison.annulee_le = maintenant or maintenant_utc()
        await self._session.commit()

        logger.info("livraison_annulee livraison_id=%s motif=%s", livraison.id, motif)
        return livraison

    async def changer_statut(
        self,
        livraison_id: UUID,
        statut: StatutLivraison,
        *,
        livreur_id: UUID | None = None,
        motif: str | None = None,
        maintenant: datetime | None = None,
    ) -> Livraison:
        """Point d'entrée générique, délègue à l'opération dédiée."""

        if statut == StatutLivraison.ASSIGNEE:
            if livreur_id is None:
                raise DonneesInvalidesLivraison("livreur_id est obligatoire pour assigner une livraison.")
            return await self.assigner_livreur(livraison_id, livreur_id=livreur_id, maintenant=maintenant)
        if statut == StatutLivraison.RECUPEREE:
            return await self.marquer_colis_recupere(livraison_id, maintenant=maintenant)
        if statut == StatutLivraison.EN_COURS:
            return await self.demarrer(livraison_id, maintenant=maintenant)
        if statut == StatutLivraison.LIVREE:
            return await self.terminer(livraison_id, maintenant=maintenant)
        if statut == StatutLivraison.ANNULEE:
            return await self.annuler(livraison_id, motif=motif, maintenant=maintenant)

        livraison = await self.obtenir(livraison_id)
        raise TransitionInvalideLivraison(livraison.statut, statut)

    async def mettre_a_jour(
        self,
        livraison_id: UUID,
        *,
        notes: str | None = None,
        priorite: PrioriteLivraison | None = None,
        adresse_id: UUID | None = None,
    ) -> Livraison:
        livraison = await self.obtenir(livraison_id)
        if livraison.statut in STATUTS_TERMINAUX:
            raise TransitionInvalideLivraison(livraison.statut, livraison.statut)

        if notes is not None:
            livraison.notes = notes
        if priorite is not None:
            livraison.priorite = priorite
        if adresse_id is not None:
            adresse = await self._session.get(Adresse, adresse_id)
            if adresse is None or not adresse.actif:
                raise DonneesInvalidesLivraison("Adresse introuvable ou désactivée.")
            livraison.adresse_id = adresse.id

        await self._session.commit()
        await self._session.refresh(livraison)
        return livraison

    async def supprimer(self, livraison_id: UUID) -> None:
        """Suppression physique."""

        livraison = await self.obtenir(livraison_id)
        await self._session.delete(livraison)
        await self._session.commit()
        logger.info("livraison_supprimee livraison_id=%s", livraison_id)

    # ------------------------------------------------------------------
    # Requêtes
    # ------------------------------------------------------------------

    async def lister(self, *, statut: StatutLivraison | None = None) -> list[Livraison]:
        stmt = select(Livraison).order_by(Livraison.cree_le.desc())
        if statut is not None:
            stmt = stmt.where(Livraison.statut == statut)
        return list((await self._session.execute(stmt)).scalars().all())

    async def lister_en_cours(self) -> list[Livraison]:
        res = await self._session.execute(
            select(Livraison)
            .where(Livraison.statut.not_in(list(STATUTS_TERMINAUX)))
            .order_by(Livraison.cree_le.asc())
        )
        return list(res.scalars().all())

    async def lister_par_statut(self, statut: StatutLivraison) -> list[Livraison]:
        return await self.lister(statut=statut)

    async def lister_par_livreur(self, livreur_id: UUID) -> list[Livraison]:
        res = await self._session.execute(
            select(Livraison).where(Livraison.livreur_id == livreur_id).order_by(Livraison.cree_le.desc())
        )
        return list(res.scalars().all())

    async def par_commande_code(self, commande_code: str) -> Livraison | None:
        res = await self._session.execute(select(Livraison).where(Livraison.commande_code == commande_code))
        return res.scalar_one_or_none()

    async def statistiques(self, *, debut: datetime, fin: datetime) -> StatistiquesLivraisons:
        """Livraisons créées dans [debut, fin[."""

        res = await self._session.execute(
            select(Livraison, Adresse.commune)
            .outerjoin(Adresse, Adresse.id == Livraison.adresse_id)
            .where(Livraison.cree_le >= debut)
            .where(Livraison.cree_le < fin)
        )
        lignes = res.all()

        stats = StatistiquesLivraisons(total=len(lignes))
        minutes: list[float] = []
        communes: Counter[str] = Counter()

        for livraison, commune in lignes:
            communes[commune or "inconnue"] += 1
            if livraison.statut == StatutLivraison.LIVREE:
                stats.livrees += 1
                if livraison.livree_le is not None:
                    ecart = en_utc(livraison.livree_le) - en_utc(livraison.cree_le)
                    minutes.append(ecart.total_seconds() / 60)
            elif livraison.statut == StatutLivraison.ANNULEE:
                stats.annulees += 1
            else:
                stats.en_cours += 1

        if stats.total:
            stats.taux_livraison = arrondir(stats.livrees / stats.total * 100, 1)
        stats.delais = calculer_delais(minutes)
        stats.par_commune = dict(communes.most_common())
        return stats

    @staticmethod
    def _verifier_transition(livraison: Livraison, vers: StatutLivraison) -> None:
        if not transition_autorisee(livraison.statut, vers):
            raise TransitionInvalideLivraison(livraison.statut, vers)
