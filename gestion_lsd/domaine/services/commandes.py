from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.nombres import arrondir
from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.enums.types import FamilleEmplacement, StatutCommande, TypeArticle, TypeCommande
from gestion_lsd.domaine.modeles.adresses import Adresse
from gestion_lsd.domaine.modeles.auth import User
from gestion_lsd.domaine.modeles.catalogue import Boisson, Menu
from gestion_lsd.domaine.modeles.commandes import Commande, CompteurCommande, LigneCommande
from gestion_lsd.domaine.modeles.emplacements import Emplacement


logger = logging.getLogger(__name__)

_MOTIF_TELEPHONE_CLIENT = re.compile(r"^\d{1,14}$")
_MOTIF_SEXE = re.compile(r"^[A-Z]$")

# au-delà de +/- 5 % par rapport à la veille, on parle de hausse / baisse
SEUIL_TENDANCE_POURCENT = 5.0

STATUTS_PAR_TYPE: dict[TypeCommande, frozenset[StatutCommande]] = {
    TypeCommande.SUR_PLACE: frozenset({StatutCommande.NON_SERVI, StatutCommande.SERVI, StatutCommande.ANNULEE}),
    TypeCommande.A_LIVRER: frozenset({StatutCommande.NON_LIVREE, StatutCommande.LIVREE, StatutCommande.ANNULEE}),
}

STATUT_INITIAL: dict[TypeCommande, StatutCommande] = {
    TypeCommande.SUR_PLACE: StatutCommande.NON_SERVI,
    TypeCommande.A_LIVRER: StatutCommande.NON_LIVREE,
}


class ErreurCommande(Exception):
    """Erreur générique commandes."""


class DonneesInvalidesCommande(ErreurCommande):
    pass


class CommandeIntrouvable(ErreurCommande):
    pass


class StatutCommandeInvalide(ErreurCommande):
    pass


@dataclass(frozen=True)
class LigneDemandee:
    type_article: TypeArticle
    article_id: UUID
    quantite: int


@dataclass(frozen=True)
class PaiementDemande:
    montant_especes: int = 0
    montant_momo: int = 0
    frais_livraison: int = 0
    reduction: int = 0


@dataclass(frozen=True)
class MontantsCommande:
    sous_total: int
    total: int
    montant_recu: int
    monnaie_rendue: int
    dette: int


@dataclass(frozen=True)
class Tendance:
    direction: str
    pourcentage: float
    total_veille: int


@dataclass
class StatistiquesJour:
    jour: date
    nombre_commandes: int = 0
    total_ventes: int = 0
    sur_place: dict = field(default_factory=lambda: {"nombre": 0, "montant": 0})
    a_livrer: dict = field(default_factory=lambda: {"nombre": 0, "montant": 0})
    articles: list[dict] = field(default_factory=list)
    vendeurs: list[dict] = field(default_factory=list)
    encaissements: dict = field(default_factory=lambda: {"especes": 0, "momo": 0, "total": 0})
    tendance: Tendance | None = None


def formater_code_commande(*, annee: int, mois: int, sexe: str, numero: int, type_commande: TypeCommande) -> str:
    return f"{annee}{mois:02d}{sexe}{numero:05d}-{type_commande.value}"


def calculer_montants(sous_total: int, paiement: PaiementDemande) -> MontantsCommande:
    total = max(0, sous_total + paiement.frais_livraison - paiement.reduction)
    recu = paiement.montant_especes + paiement.montant_momo
    return MontantsCommande(
        sous_total=sous_total,
        total=total,
        montant_recu=recu,
        monnaie_rendue=max(0, recu - total),
        dette=max(0, total - recu),
    )


def calculer_tendance(total_jour: int, total_veille: int) -> Tendance:
    variation = (total_jour - total_veille) / (total_veille or 1) * 100
    if variation > SEUIL_TENDANCE_POURCENT:
        direction = "hausse"
    elif variation < -SEUIL_TENDANCE_POURCENT:
        direction = "baisse"
    else:
        direction = "stable"

    if total_veille > 0:
        pourcentage = Decimal(total_jour - total_veille) * 100 / Decimal(total_veille)
    elif total_jour > 0:
        pourcentage = 100.0
    else:
        pourcentage = 0.0

    return Tendance(direction=direction, pourcentage=arrondir(pourcentage, 1), total_veille=total_veille)


def _bornes_jour(jour: date) -> tuple[datetime, datetime]:
    debut = datetime.combine(jour, time.min).replace(tzinfo=timezone.utc)
    return debut, debut + timedelta(days=1)


class ServiceCommandes:
    """Commandes sur place et à livrer.

    Les prix et dénominations des articles sont lus dans le catalogue au
    moment de la commande puis figés sur les lignes.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def creer(
        self,
        *,
        type_commande: TypeCommande,
        sexe: str,
        client_nom: str,
        client_telephone: str,
        point_de_vente_id: UUID,
        lignes: list[LigneDemandee],
        paiement: PaiementDemande | None = None,
        vendeur: User | None = None,
        adresse_livraison_id: UUID | None = None,
        personne_a_livrer: str | None = None,
        telephone_a_livrer: str | None = None,
        livraison_prevue_le: datetime | None = None,
        indication_adresse: str | None = None,
        maintenant: datetime | None = None,
    ) -> Commande:
        maintenant = maintenant or maintenant_utc()
        paiement = paiement or PaiementDemande()

        sexe = (sexe or "").strip().upper()
        if not _MOTIF_SEXE.match(sexe):
            raise DonneesInvalidesCommande("Le sexe du client doit être une lettre (ex : M, F).")
        if not client_nom or not client_nom.strip():
            raise DonneesInvalidesCommande("Le nom du client est obligatoire.")
        if not _MOTIF_TELEPHONE_CLIENT.match(client_telephone or ""):
            raise DonneesInvalidesCommande("Le numéro du client doit contenir de 1 à 14 chiffres.")
        if telephone_a_livrer and not _MOTIF_TELEPHONE_CLIENT.match(telephone_a_livrer):
            raise DonneesInvalidesCommande("Le numéro de la personne à livrer doit contenir de 1 à 14 chiffres.")
        self._valider_paiement(paiement)

        point_de_vente = await self._session.get(Emplacement, point_de_vente_id)
        if point_de_vente is None or not point_de_vente.actif or point_de_vente.famille == FamilleEmplacement.ENTREPOT:
            raise DonneesInvalidesCommande("Point de vente introuvable ou inactif.")

        if type_commande == TypeCommande.A_LIVRER:
            if adresse_livraison_id is None:
                raise DonneesInvalidesCommande("Une adresse de livraison est obligatoire pour une commande à livrer.")
            adresse = await self._session.get(Adresse, adresse_livraison_id)
            if adresse is None or not adresse.actif:
                raise DonneesInvalidesCommande("Adresse de livraison introuvable ou désactivée.")
        else:
            adresse_livraison_id = None
            personne_a_livrer = telephone_a_livrer = indication_adresse = None
            livraison_prevue_le = None
            if paiement.frais_livraison:
                raise DonneesInvalidesCommande("Pas de frais de livraison pour une commande sur place.")

        lignes_commande = await self._construire_lignes(lignes)
        sous_total = sum(l.quantite * l.prix_unitaire for l in lignes_commande)
        if paiement.reduction > sous_total + paiement.frais_livraison:
            raise DonneesInvalidesCommande("La réduction dépasse le montant de la commande.")
        montants = calculer_montants(sous_total, paiement)

        numero = await self._prochain_numero(annee=maintenant.year, mois=maintenant.month, sexe=sexe)
        code = formater_code_commande(
            annee=maintenant.year,
            mois=maintenant.month,
            sexe=sexe,
            numero=numero,
            type_commande=type_commande,
        )

        commande = Commande(
            code=code,
            type_commande=type_commande,
            statut=STATUT_INITIAL[type_commande],
            client_nom=client_nom.strip(),
            client_telephone=client_telephone,
            point_de_vente_id=point_de_vente.id,
            point_de_vente_nom=point_de_vente.denomination,
            vendeur_id=vendeur.id if vendeur else None,
            vendeur_nom=vendeur.nom_affiche if vendeur else None,
            adresse_livraison_id=adresse_livraison_id,
            personne_a_livrer=personne_a_livrer,
            telephone_a_livrer=telephone_a_livrer,
            livraison_prevue_le=livraison_prevue_le,
            indication_adresse=indication_adresse,
            sous_total=montants.sous_total,
            frais_livraison=paiement.frais_livraison,
            reduction=paiement.reduction,
            total=montants.total,
            montant_especes=paiement.montant_especes,
            montant_momo=paiement.montant_momo,
            montant_recu=montants.montant_recu,
            monnaie_rendue=montants.monnaie_rendue,
            dette=montants.dette,
            actif=True,
            cree_le=maintenant,
            lignes=lignes_commande,
        )
        self._session.add(commande)
        await self._session.commit()

        logger.info(
            "commande_creee code=%s type=%s total=%s point_de_vente=%s",
            code,
            type_commande.value,
            montants.total,
            point_de_vente.denomination,
        )
        return await self.obtenir(code)

    async def obtenir(self, code: str) -> Commande:
        res = await self._session.execute(
            select(Commande).where(Commande.code == code).execution_options(populate_existing=True)
        )
        commande = res.scalar_one_or_none()
        if commande is None:
            raise CommandeIntrouvable(f"Commande {code} introuvable.")
        return commande

    async def lister(
        self,
        *,
        jour: date | None = None,
        type_commande: TypeCommande | None = None,
        statut: StatutCommande | None = None,
        point_de_vente_id: UUID | None = None,
        inclure_inactives: bool = False,
    ) -> list[Commande]:
        stmt = select(Commande).order_by(Commande.cree_le.desc())
        if jour is not None:
            debut, fin = _bornes_jour(jour)
            stmt = stmt.where(Commande.cree_le >= debut).where(Commande.cree_le < fin)
        if type_commande is not None:
            stmt = stmt.where(Commande.type_commande == type_commande)
        if statut is not None:
            stmt = stmt.where(Commande.statut == statut)
        if point_de_vente_id is not None:
            stmt = stmt.where(Commande.point_de_vente_id == point_de_vente_id)
        if not inclure_inactives:
            stmt = stmt.where(Commande.actif.is_(True))

        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def changer_statut(self, code: str, statut: StatutCommande) -> Commande:
        commande = await self.obtenir(code)

        if statut not in STATUTS_PAR_TYPE[commande.type_commande]:
            raise StatutCommandeInvalide(
                f"Statut {statut.value} impossible pour une commande {commande.type_commande.value}."
            )
        if commande.statut == StatutCommande.ANNULEE and statut != StatutCommande.ANNULEE:
            raise StatutCommandeInvalide("Une commande annulée ne peut plus changer de statut.")

        if commande.statut != statut:
            ancien = commande.statut
            commande.statut = statut
            await self._session.commit()
            logger.info("commande_statut code=%s de=%s vers=%s", code, ancien.value, statut.value)
        return commande

    async def desactiver(self, code: str) -> Commande:
        commande = await self.obtenir(code)
        commande.actif = False
        await self._session.commit()
        return commande

    async def statistiques_jour(self, jour: date, *, point_de_vente_id: UUID | None = None) -> StatistiquesJour:
        """Synthèse des ventes d’une journée (UTC), commandes annulées exclues."""

        commandes = await self._commandes_comptabilisees(jour, point_de_vente_id)
        veille = await self._commandes_comptabilisees(jour - timedelta(days=1), point_de_vente_id)

        stats = StatistiquesJour(jour=jour)
        articles: dict[tuple[str, str], dict] = {}
        vendeurs: dict[str, dict] = defaultdict(lambda: {"commandes": 0, "ventes": 0})

        for c in commandes:
            stats.nombre_commandes += 1
            stats.total_ventes += c.total

            repartition = stats.sur_place if c.type_commande == TypeCommande.SUR_PLACE else stats.a_livrer
            repartition["nombre"] += 1
            repartition["montant"] += c.total

            for l in c.lignes:
                cle = (l.type_article.value, l.denomination)
                ligne_stat = articles.setdefault(
                    cle,
                    {"type_article": l.type_article.value, "denomination": l.denomination, "quantite": 0, "montant": 0},
                )
                ligne_stat["quantite"] += l.quantite
                ligne_stat["montant"] += l.quantite * l.prix_unitaire

            vendeur = c.vendeur_nom or "inconnu"
            vendeurs[vendeur]["commandes"] += 1
            vendeurs[vendeur]["ventes"] += c.total

            # encaissé = reçu - monnaie rendue, ventilé espèces d’abord
            rendu_especes = min(c.monnaie_rendue, c.montant_especes)
            stats.encaissements["especes"] += c.montant_especes - rendu_especes
            stats.encaissements["momo"] += c.montant_momo - (c.monnaie_rendue - rendu_especes)

        stats.encaissements["total"] = stats.encaissements["especes"] + stats.encaissements["momo"]
        stats.articles = sorted(articles.values(), key=lambda a: (-a["quantite"], a["denomination"]))
        stats.vendeurs = sorted(
            ({"vendeur": nom, **valeurs} for nom, valeurs in vendeurs.items()),
            key=lambda v: (-v["ventes"], v["vendeur"]),
        )
        stats.tendance = calculer_tendance(stats.total_ventes, sum(c.total for c in veille))
        return stats

    async def _commandes_comptabilisees(self, jour: date, point_de_vente_id: UUID | None) -> list[Commande]:
        commandes = await self.lister(jour=jour, point_de_vente_id=point_de_vente_id)
        return [c for c in commandes if c.statut != StatutCommande.ANNULEE]

    async def _construire_lignes(self, lignes: list[LigneDemandee]) -> list[LigneCommande]:
        if not lignes:
            raise DonneesInvalidesCommande("La commande doit contenir au moins un article.")

        resultat: list[LigneCommande] = []
        for demande in lignes:
            if demande.quantite is None or int(demande.quantite) <= 0:
                raise DonneesInvalidesCommande("La quantité doit être > 0.")

            modele = Menu if demande.type_article == TypeArticle.MENU else Boisson
            article = await self._session.get(modele, demande.article_id)
            if article is None or not article.actif:
                raise DonneesInvalidesCommande(
                    f"Article {demande.type_article.value} {demande.article_id} introuvable ou désactivé."
                )

            resultat.append(
                LigneCommande(
                    type_article=demande.type_article,
                    article_id=article.id,
                    denomination=article.denomination,
                    quantite=int(demande.quantite),
                    prix_unitaire=int(article.prix),
                )
            )
        return resultat

    async def _prochain_numero(self, *, annee: int, mois: int, sexe: str) -> int:
        """Incrémente le compteur (année, mois, sexe).

        FOR UPDATE sérialise les créations concurrentes sous PostgreSQL ; la
        contrainte d’unicité couvre la création du compteur lui-même.
        """

        compteur = (
            await self._session.execute(
                select(CompteurCommande)
                .where(CompteurCommande.annee == annee)
                .where(CompteurCommande.mois == mois)
                .where(CompteurCommande.sexe == sexe)
                .with_for_update()
            )
        ).scalar_one_or_none()

        if compteur is None:
            compteur = CompteurCommande(annee=annee, mois=mois, sexe=sexe, dernier_numero=0)
            self._session.add(compteur)

        compteur.dernier_numero += 1
        await self._session.flush()
        return compteur.dernier_numero

    @staticmethod
    def _valider_paiement(paiement: PaiementDemande) -> None:
        for nom in ("montant_especes", "montant_momo", "frais_livraison", "reduction"):
            if getattr(paiement, nom) < 0:
                raise DonneesInvalidesCommande(f"{nom} doit être >= 0.")
