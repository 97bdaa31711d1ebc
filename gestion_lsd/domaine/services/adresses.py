from __future__ import annotations

"""Adresses de livraison et hiérarchie département -> commune -> arrondissement -> quartier.

Règles :
- Le département est normalisé sur la liste officielle du Bénin (sinon `inconnu`).
- Les comparaisons de libellés se font sur une forme normalisée (casse,
  accents, ponctuation, espaces).
- Doublon = même nom, ou même commune + arrondissement + quartier, dans le
  même département.
- Pas de suppression physique : `supprimer` désactive.

Les messages d’erreur gardent un préfixe stable (E_INVALID_ADRESSE, ...) :
le front s’en sert pour choisir le message à afficher.
"""

import logging
import re
import unicodedata
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.nombres import arrondir
from gestion_lsd.domaine.enums.types import FonctionPersonnel
from gestion_lsd.domaine.modeles.adresses import Adresse, TarifLivraison
from gestion_lsd.domaine.services.personnel import MembrePersonnelIntrouvable, ServicePersonnel


logger = logging.getLogger(__name__)


DEPARTEMENT_INCONNU = "inconnu"

DEPARTEMENTS_BENIN: tuple[str, ...] = (
    "alibori",
    "atacora",
    "atlantique",
    "borgou",
    "collines",
    "couffo",
    "donga",
    "littoral",
    "mono",
    "oueme",
    "plateau",
    "zou",
    DEPARTEMENT_INCONNU,
)


class ErreurAdresse(Exception):
    """Erreur générique adresses."""


class DonneesInvalidesAdresse(ErreurAdresse):
    pass


class AdresseIntrouvable(ErreurAdresse):
    pass


class AdresseEnDoublon(ErreurAdresse):
    pass


def normaliser_libelle(valeur: str | None) -> str:
    if not valeur:
        return ""
    texte = unicodedata.normalize("NFD", valeur.lower().strip())
    texte = "".join(c for c in texte if not unicodedata.combining(c))
    texte = re.sub(r"[^\w\s]", "", texte)
    return re.sub(r"\s+", " ", texte).strip()


def normaliser_departement(departement: str | None) -> str:
    cle = normaliser_libelle(departement)
    return cle if cle in DEPARTEMENTS_BENIN else DEPARTEMENT_INCONNU


def sont_doublons(a: Adresse, b: Adresse) -> bool:
    nom_a, nom_b = normaliser_libelle(a.nom), normaliser_libelle(b.nom)
    if nom_a and nom_b and nom_a == nom_b:
        return True

    return (
        normaliser_libelle(a.commune) == normaliser_libelle(b.commune)
        and normaliser_libelle(a.arrondissement) == normaliser_libelle(b.arrondissement)
        and normaliser_libelle(a.quartier) == normaliser_libelle(b.quartier)
    )


def _decrire(adresse: Adresse) -> str:
    if adresse.nom:
        return f'"{adresse.nom}" (ID: {adresse.id})'
    return f"{adresse.commune}, {adresse.arrondissement}, {adresse.quartier} (ID: {adresse.id})"


@dataclass(frozen=True)
class Suggestion:
    valeur: str
    departement: str
    commune: str | None
    arrondissement: str | None
    nombre: int


@dataclass(frozen=True)
class StatistiquesStatut:
    total: int
    actives: int
    desactivees: int


class ServiceAdresses:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def creer(
        self,
        *,
        departement: str,
        commune: str,
        nom: str | None = None,
        arrondissement: str | None = None,
        quartier: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        actif: bool = True,
        cree_par: UUID | None = None,
    ) -> Adresse:
        if not (departement or "").strip() or not (commune or "").strip():
            raise DonneesInvalidesAdresse("E_INVALID_ADRESSE: Département et commune sont obligatoires")

        adresse = Adresse(
            nom=(nom or "").strip(),
            departement=normaliser_departement(departement),
            commune=commune.strip(),
            arrondissement=(arrondissement or "").strip(),
            quartier=(quartier or "").strip(),
            latitude=float(latitude or 0.0),
            longitude=float(longitude or 0.0),
            actif=actif,
            cree_par=cree_par,
        )

        await self._refuser_doublon(adresse)

        self._session.add(adresse)
        await self._session.commit()
        await self._session.refresh(adresse)

        logger.info("adresse_creee adresse_id=%s departement=%s commune=%s", adresse.id, adresse.departement, adresse.commune)
        return adresse

    async def obtenir(self, adresse_id: UUID) -> Adresse:
        adresse = await self._session.get(Adresse, adresse_id)
        if adresse is None:
            raise AdresseIntrouvable(f"E_ADRESSE_NOT_FOUND: Adresse {adresse_id} introuvable")
        return adresse

    async def lister(
        self,
        *,
        departement: str | None = None,
        inclure_inactives: bool = False,
    ) -> list[Adresse]:
        stmt = select(Adresse).order_by(
            Adresse.departement.asc(),
            Adresse.commune.asc(),
            Adresse.arrondissement.asc(),
            Adresse.quartier.asc(),
            Adresse.nom.asc(),
        )
        if departement:
            stmt = stmt.where(Adresse.departement == normaliser_departement(departement))
        if not inclure_inactives:
            stmt = stmt.where(Adresse.actif.is_(True))
        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def mettre_a_jour(
        self,
        adresse_id: UUID,
        *,
        nom: str | None = None,
        departement: str | None = None,
        commune: str | None = None,
        arrondissement: str | None = None,
        quartier: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Adresse:
        adresse = await self.obtenir(adresse_id)

        if commune is not None and not commune.strip():
            raise DonneesInvalidesAdresse("E_INVALID_ADRESSE: La commune ne peut pas être vide")

        if nom is not None:
            adresse.nom = nom.strip()
        if departement is not None:
            # changement de département autorisé : l’adresse "déménage"
            adresse.departement = normaliser_departement(departement)
        if commune is not None:
            adresse.commune = commune.strip()
        if arrondissement is not None:
            adresse.arrondissement = arrondissement.strip()
        if quartier is not None:
            adresse.quartier = quartier.strip()
        if latitude is not None:
            adresse.latitude = float(latitude)
        if longitude is not None:
            adresse.longitude = float(longitude)

        try:
            await self._refuser_doublon(adresse)
        except AdresseEnDoublon:
            await self._session.rollback()
            raise

        await self._session.commit()
        await self._session.refresh(adresse)
        return adresse

    async def supprimer(self, adresse_id: UUID) -> Adresse:
        """Suppression logique."""

        return await self.definir_statut(adresse_id, actif=False)

    async def definir_statut(self, adresse_id: UUID, *, actif: bool) -> Adresse:
        adresse = await self.obtenir(adresse_id)
        adresse.actif = actif
        await self._session.commit()
        return adresse

    async def basculer_statut(self, adresse_id: UUID) -> Adresse:
        adresse = await self.obtenir(adresse_id)
        return await self.definir_statut(adresse_id, actif=not adresse.actif)

    # ------------------------------------------------------------------
    # Statut en masse sur un niveau de la hiérarchie
    # ------------------------------------------------------------------

    async def basculer_statut_zone(
        self,
        *,
        actif: bool,
        departement: str | None = None,
        commune: str | None = None,
        arrondissement: str | None = None,
        quartier: str | None = None,
    ) -> int:
        """Active / désactive toutes les adresses d’une zone.

        La zone est définie par les niveaux renseignés (département seul,
        département + commune, ...). Sans département, la recherche porte sur
        tous les départements. Retourne le nombre d’adresses modifiées.
        """

        criteres = {
            "commune": normaliser_libelle(commune),
            "arrondissement": normaliser_libelle(arrondissement),
            "quartier": normaliser_libelle(quartier),
        }
        if not departement and not any(criteres.values()):
            raise DonneesInvalidesAdresse("E_INVALID_ADRESSE: Une zone doit être précisée")

        candidates = await self.lister(departement=departement, inclure_inactives=True)
        ids = [
            a.id
            for a in candidates
            if all(not v or normaliser_libelle(getattr(a, champ)) == v for champ, v in criteres.items())
            and a.actif != actif
        ]

        if ids:
            await self._session.execute(
                update(Adresse).where(Adresse.id.in_(ids)).values(actif=actif).execution_options(synchronize_session="fetch")
            )
        await self._session.commit()

        logger.info(
            "adresses_statut_zone actif=%s departement=%s commune=%s arrondissement=%s quartier=%s modifiees=%s",
            actif,
            departement,
            commune,
            arrondissement,
            quartier,
            len(ids),
        )
        return len(ids)

    # ------------------------------------------------------------------
    # Lecture : hiérarchie, suggestions, recherche, statistiques
    # ------------------------------------------------------------------

    async def lister_departements(self) -> list[dict]:
        adresses = await self.lister(inclure_inactives=True)
        compte = Counter(a.departement for a in adresses)
        return [{"departement": d, "nombre": compte.get(d, 0)} for d in DEPARTEMENTS_BENIN]

    async def arborescence(self, *, inclure_inactives: bool = False) -> dict:
        """département -> commune -> arrondissement -> quartier -> nombre d’adresses."""

        arbre: dict = {}
        for a in await self.lister(inclure_inactives=inclure_inactives):
            communes = arbre.setdefault(a.departement, {})
            arrondissements = communes.setdefault(a.commune, {})
            quartiers = arrondissements.setdefault(a.arrondissement, {})
            quartiers[a.quartier] = quartiers.get(a.quartier, 0) + 1
        return arbre

    async def suggestions(
        self,
        niveau: str,
        *,
        requete: str = "",
        departement: str | None = None,
        commune: str | None = None,
        arrondissement: str | None = None,
    ) -> list[Suggestion]:
        """Autocomplétion sur un niveau (`commune`, `arrondissement`, `quartier`).

        Triée par popularité (nombre d’adresses) décroissante.
        """

        if niveau not in ("commune", "arrondissement", "quartier"):
            raise DonneesInvalidesAdresse(f"E_INVALID_ADRESSE: Niveau inconnu {niveau}")

        filtre_commune = normaliser_libelle(commune)
        filtre_arrondissement = normaliser_libelle(arrondissement)
        cle_requete = normaliser_libelle(requete)

        compteur: Counter = Counter()
        libelles: dict[tuple, tuple[str, str | None, str | None]] = {}
        for a in await self.lister(departement=departement, inclure_inactives=True):
            valeur = getattr(a, niveau)
            if not valeur or not valeur.strip():
                continue
            if filtre_commune and niveau != "commune" and normaliser_libelle(a.commune) != filtre_commune:
                continue
            if filtre_arrondissement and niveau == "quartier" and normaliser_libelle(a.arrondissement) != filtre_arrondissement:
                continue
            if cle_requete and cle_requete not in normaliser_libelle(valeur):
                continue

            parent_commune = a.commune if niveau != "commune" else None
            parent_arrondissement = a.arrondissement if niveau == "quartier" else None
            cle = (normaliser_libelle(valeur), a.departement, normaliser_libelle(parent_commune), normaliser_libelle(parent_arrondissement))
            compteur[cle] += 1
            libelles.setdefault(cle, (valeur, parent_commune, parent_arrondissement))

        resultat = [
            Suggestion(
                valeur=libelles[cle][0],
                departement=cle[1],
                commune=libelles[cle][1],
                arrondissement=libelles[cle][2],
                nombre=nombre,
            )
            for cle, nombre in compteur.items()
        ]
        resultat.sort(key=lambda s: (-s.nombre, normaliser_libelle(s.valeur)))
        return resultat

    async def rechercher(self, terme: str) -> list[Adresse]:
        if not terme or not terme.strip():
            return []

        motif = f"%{terme.strip()}%"
        res = await self._session.execute(
            select(Adresse)
            .where(
                or_(
                    Adresse.nom.ilike(motif),
                    Adresse.departement.ilike(motif),
                    Adresse.commune.ilike(motif),
                    Adresse.arrondissement.ilike(motif),
                    Adresse.quartier.ilike(motif),
                )
            )
            .order_by(Adresse.commune.asc(), Adresse.nom.asc())
        )
        return list(res.scalars().all())

    async def statistiques_statut(self, *, departement: str | None = None) -> StatistiquesStatut:
        adresses = await self.lister(departement=departement, inclure_inactives=True)
        actives = sum(1 for a in adresses if a.actif)
        return StatistiquesStatut(total=len(adresses), actives=actives, desactivees=len(adresses) - actives)

    async def verifier_doublons(self, candidate: Adresse) -> list[Adresse]:
        """Doublons potentiels d’une adresse (elle-même exclue) dans son département."""

        stmt = select(Adresse).where(Adresse.departement == normaliser_departement(candidate.departement))
        if candidate.id is not None:
            stmt = stmt.where(Adresse.id != candidate.id)
        existantes = (await self._session.execute(stmt)).scalars().all()
        return [a for a in existantes if sont_doublons(candidate, a)]

    async def trouver_tous_les_doublons(self) -> list[list[Adresse]]:
        adresses = await self.lister(inclure_inactives=True)
        traites: set[UUID] = set()
        groupes: list[list[Adresse]] = []

        for adresse in adresses:
            if adresse.id in traites:
                continue
            doublons = [
                a
                for a in adresses
                if a.id != adresse.id and a.departement == adresse.departement and sont_doublons(adresse, a)
            ]
            if doublons:
                groupe = [adresse, *doublons]
                groupes.append(groupe)
                traites.update(a.id for a in groupe)

        return groupes

    # ------------------------------------------------------------------
    # Tarifs de livraison
    # ------------------------------------------------------------------

    async def definir_tarif(self, adresse_id: UUID, *, livreur_id: UUID, tarif: int) -> TarifLivraison:
        if tarif is None or int(tarif) < 0:
            raise DonneesInvalidesAdresse("E_INVALID_ADRESSE: Le tarif doit être >= 0")

        await self.obtenir(adresse_id)
        try:
            livreur = await ServicePersonnel(self._session).obtenir_actif(livreur_id, fonction=FonctionPersonnel.LIVREUR)
        except MembrePersonnelIntrouvable as e:
            raise DonneesInvalidesAdresse(f"E_INVALID_ADRESSE: {e}") from e

        ligne = (
            await self._session.execute(
                select(TarifLivraison)
                .where(TarifLivraison.adresse_id == adresse_id)
                .where(TarifLivraison.livreur_id == livreur_id)
            )
        ).scalar_one_or_none()
        if ligne is None:
            ligne = TarifLivraison(adresse_id=adresse_id, livreur_id=livreur_id, livreur_nom="", tarif=0)
            self._session.add(ligne)

        ligne.livreur_nom = livreur.nom_complet
        ligne.tarif = int(tarif)

        await self._session.commit()
        await self._session.refresh(ligne)
        return ligne

    async def lister_tarifs(self, adresse_id: UUID) -> list[TarifLivraison]:
        await self.obtenir(adresse_id)
        res = await self._session.execute(
            select(TarifLivraison)
            .where(TarifLivraison.adresse_id == adresse_id)
            .order_by(TarifLivraison.tarif.asc())
        )
        return list(res.scalars().all())

    async def tarifs_moyens_par_quartier(self) -> dict[str, int]:
        """Tarif moyen (arrondi) par quartier, toutes adresses actives confondues."""

        res = await self._session.execute(
            select(Adresse.quartier, TarifLivraison.tarif)
            .join(TarifLivraison, TarifLivraison.adresse_id == Adresse.id)
            .where(Adresse.actif.is_(True))
            .where(Adresse.quartier != "")
        )
        cumuls: dict[str, list[int]] = {}
        for quartier, tarif in res.all():
            cumuls.setdefault(quartier, []).append(int(tarif))
        return {q: arrondir(Decimal(sum(t)) / len(t)) for q, t in cumuls.items()}

    async def _refuser_doublon(self, adresse: Adresse) -> None:
        doublons = await self.verifier_doublons(adresse)
        if doublons:
            raise AdresseEnDoublon(f"E_DUPLICATE_ADRESSE: Cette adresse existe déjà - {_decrire(doublons[0])}")
