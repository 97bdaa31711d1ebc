"""Comptabilité : comptes OHADA, trésoreries, opérations et clôtures.

Découpage de l'année en semaines comptables :
- une semaine commence le lundi ;
- si le 1er janvier n'est pas un lundi, `S01` est une semaine partielle
  (1er janvier -> veille du premier lundi) ;
- la dernière semaine est tronquée au 31 décembre.

Une semaine clôturée est figée : aucune opération ne peut y être ajoutée ni
retirée.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.enums.types import (
    CodeRole,
    TypeCompteComptable,
    TypeNotification,
    TypeOperationComptable,
    TypeTresorerie,
)
from gestion_lsd.domaine.modeles.comptabilite import (
    CompteComptable,
    OperationComptable,
    SemaineComptable,
    Tresorerie,
)
from gestion_lsd.domaine.services.administration import journaliser_action
from gestion_lsd.domaine.services.notifications import notifier_role


logger = logging.getLogger(__name__)


TYPES_COMPTE_AUTORISES: dict[TypeOperationComptable, frozenset[TypeCompteComptable]] = {
    TypeOperationComptable.RECETTE: frozenset({TypeCompteComptable.ENTREE, TypeCompteComptable.ENTREE_SORTIE}),
    TypeOperationComptable.DEPENSE: frozenset({TypeCompteComptable.SORTIE, TypeCompteComptable.ENTREE_SORTIE}),
}


class ErreurComptabilite(Exception):
    """Erreur générique comptabilité."""


class DonneesInvalidesComptabilite(ErreurComptabilite):
    pass


class ElementComptableIntrouvable(ErreurComptabilite):
    pass


class ConflitComptabilite(ErreurComptabilite):
    pass


class SemaineCloturee(ErreurComptabilite):
    """Écriture refusée : la semaine est clôturée."""


@dataclass(frozen=True)
class PeriodeSemaine:
    annee: int
    numero: int
    code: str
    date_debut: date
    date_fin: date

    @property
    def nombre_jours(self) -> int:
        return (self.date_fin - self.date_debut).days + 1

    @property
    def libelle(self) -> str:
        return f"S{self.numero} [{self.date_debut:%d/%m/%Y} - {self.date_fin:%d/%m/%Y}]"


@dataclass(frozen=True)
class StatutCloture:
    existe: bool
    cloture: bool
    peut_cloturer: bool
    raison: str
    jours_avant_auto_cloture: int | None = None


@dataclass(frozen=True)
class ResumeSemaine:
    annee: int
    code: str
    date_debut: date
    date_fin: date
    cloture: bool
    recettes: int
    depenses: int
    solde: int
    nombre_operations: int


@dataclass(frozen=True)
class MouvementGrandLivre:
    operation_id: UUID
    date_operation: date
    type_operation: TypeOperationComptable
    observation: str | None
    debit: int
    credit: int
    solde_cumule: int


@dataclass(frozen=True)
class CompteGrandLivre:
    compte_id: UUID
    code_ohada: str
    denomination: str
    type_compte: TypeCompteComptable
    mouvements: list[MouvementGrandLivre]
    total_debit: int
    total_credit: int

    @property
    def solde(self) -> int:
        return self.total_credit - self.total_debit


@dataclass(frozen=True)
class GrandLivre:
    debut: date
    fin: date
    comptes: list[CompteGrandLivre]

    @property
    def total_debit(self) -> int:
        return sum(c.total_debit for c in self.comptes)

    @property
    def total_credit(self) -> int:
        return sum(c.total_credit for c in self.comptes)

    @property
    def solde(self) -> int:
        return self.total_credit - self.total_debit

    @property
    def nombre_operations(self) -> int:
        return sum(len(c.mouvements) for c in self.comptes)


@dataclass(frozen=True)
class LigneBalance:
    compte_id: UUID
    code_ohada: str
    denomination: str
    type_compte: TypeCompteComptable
    debit: int
    credit: int
    solde: int
    nombre_mouvements: int


@dataclass(frozen=True)
class ClasseBalance:
    classe: str
    denomination: str
    lignes: list[LigneBalance]
    debit: int
    credit: int
    solde: int


@dataclass(frozen=True)
class Balance:
    debut: date
    fin: date
    lignes: list[LigneBalance]
    total_debit: int
    total_credit: int

    @property
    def solde(self) -> int:
        return self.total_credit - self.total_debit

    @property
    def equilibree(self) -> bool:
        return self.total_debit == self.total_credit

    @property
    def ecart(self) -> int:
        return 0 if self.equilibree else self.solde


CLASSES_OHADA: dict[str, str] = {
    "1": "Comptes de ressources durables",
    "2": "Comptes d'actif immobilisé",
    "3": "Comptes de stocks",
    "4": "Comptes de tiers",
    "5": "Comptes de trésorerie",
    "6": "Comptes de charges",
    "7": "Comptes de produits",
    "8": "Comptes des autres charges et produits",
}


def code_semaine(numero: int) -> str:
    return f"S{numero:02d}"


def generer_semaines_annee(annee: int) -> list[PeriodeSemaine]:
    premier_janvier = date(annee, 1, 1)
    dernier_jour = date(annee, 12, 31)

    # premier lundi >= 1er janvier
    premier_lundi = premier_janvier + timedelta(days=(7 - premier_janvier.weekday()) % 7)

    semaines: list[PeriodeSemaine] = []
    numero = 1
    if premier_lundi > premier_janvier:
        semaines.append(
            PeriodeSemaine(annee, numero, code_semaine(numero), premier_janvier, premier_lundi - timedelta(days=1))
        )
        numero += 1

    debut = premier_lundi
    while debut.year == annee:
        fin = min(debut + timedelta(days=6), dernier_jour)
        semaines.append(PeriodeSemaine(annee, numero, code_semaine(numero), debut, fin))
        debut += timedelta(days=7)
        numero += 1

    return semaines


def semaine_pour_date(jour: date) -> PeriodeSemaine:
    for semaine in generer_semaines_annee(jour.year):
        if semaine.date_debut <= jour <= semaine.date_fin:
            return semaine
    raise DonneesInvalidesComptabilite(f"Aucune semaine pour la date {jour.isoformat()}.")  # pragma: no cover


def _montant_signe(type_operation: TypeOperationComptable, montant: int) -> int:
    return montant if type_operation == TypeOperationComptable.RECETTE else -montant


class ServiceComptabilite:
    def __init__(self, session: AsyncSession, *, delai_cloture_jours: int | None = None) -> None:
        self._session = session
        self._delai = (
            delai_cloture_jours if delai_cloture_jours is not None else parametres_application.delai_cloture_jours
        )

    # ------------------------------------------------------------------
    # Comptes
    # ------------------------------------------------------------------

    async def creer_compte(
        self,
        *,
        code_ohada: str,
        denomination: str,
        type_compte: TypeCompteComptable,
        description: str | None = None,
    ) -> CompteComptable:
        code_ohada = (code_ohada or "").strip()
        if not code_ohada or not denomination or not denomination.strip():
            raise DonneesInvalidesComptabilite("Code OHADA et dénomination sont obligatoires.")

        existe = (
            await self._session.execute(select(CompteComptable.id).where(CompteComptable.code_ohada == code_ohada))
        ).first()
        if existe is not None:
            raise ConflitComptabilite(f"Le compte {code_ohada} existe déjà.")

        compte = CompteComptable(
            code_ohada=code_ohada,
            denomination=denomination.strip(),
            description=description,
            type_compte=type_compte,
            actif=True,
        )
        self._session.add(compte)
        await self._session.commit()
        await self._session.refresh(compte)
        return compte

    async def lister_comptes(
        self,
        *,
        type_compte: TypeCompteComptable | None = None,
        inclure_inactifs: bool = False,
    ) -> list[CompteComptable]:
        stmt = select(CompteComptable).order_by(CompteComptable.code_ohada.asc())
        if type_compte is not None:
            stmt = stmt.where(CompteComptable.type_compte == type_compte)
        if not inclure_inactifs:
            stmt = stmt.where(CompteComptable.actif.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def mettre_a_jour_compte(
        self,
        compte_id: UUID,
        *,
        denomination: str | None = None,
        description: str | None = None,
        type_compte: TypeCompteComptable | None = None,
    ) -> CompteComptable:
        compte = await self._obtenir(CompteComptable, compte_id, "Compte introuvable.")
        if denomination is not None:
            if not denomination.strip():
                raise DonneesInvalidesComptabilite("La dénomination est obligatoire.")
            compte.denomination = denomination.strip()
        if description is not None:
            compte.description = description
        if type_compte is not None:
            compte.type_compte = type_compte
        await self._session.commit()
        await self._session.refresh(compte)
        return compte

    async def desactiver_compte(self, compte_id: UUID) -> CompteComptable:
        compte = await self._obtenir(CompteComptable, compte_id, "Compte introuvable.")
        compte.actif = False
        await self._session.commit()
        return compte

    # ------------------------------------------------------------------
    # Trésoreries
    # ------------------------------------------------------------------

    async def creer_tresorerie(
        self,
        *,
        denomination: str,
        type_tresorerie: TypeTresorerie,
        numero: str | None = None,
        solde_initial: int = 0,
    ) -> Tresorerie:
        if not denomination or not denomination.strip():
            raise DonneesInvalidesComptabilite("La dénomination est obligatoire.")

        existe = (
            await self._session.execute(
                select(Tresorerie.id).where(func.lower(Tresorerie.denomination) == denomination.strip().lower())
            )
        ).first()
        if existe is not None:
            raise ConflitComptabilite("Une trésorerie avec cette dénomination existe déjà.")

        tresorerie = Tresorerie(
            denomination=denomination.strip(),
            numero=numero,
            type_tresorerie=type_tresorerie,
            solde=int(solde_initial),
            actif=True,
        )
        self._session.add(tresorerie)
        await self._session.commit()
        await self._session.refresh(tresorerie)
        return tresorerie

    async def lister_tresoreries(self, *, inclure_inactives: bool = False) -> list[Tresorerie]:
        stmt = select(Tresorerie).order_by(Tresorerie.denomination.asc())
        if not inclure_inactives:
            stmt = stmt.where(Tresorerie.actif.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def desactiver_tresorerie(self, tresorerie_id: UUID) -> Tresorerie:
        tresorerie = await self._obtenir(Tresorerie, tresorerie_id, "Trésorerie introuvable.")
        tresorerie.actif = False
        await self._session.commit()
        return tresorerie

    # ------------------------------------------------------------------
    # Opérations
    # ------------------------------------------------------------------

    async def enregistrer_operation(
        self,
        *,
        date_operation: date,
        type_operation: TypeOperationComptable,
        compte_id: UUID,
        tresorerie_id: UUID,
        montant: int,
        observation: str | None = None,
        cree_par: UUID | None = None,
        aujourd_hui: date | None = None,
    ) -> OperationComptable:
        aujourd_hui = aujourd_hui or maintenant_utc().date()
        if date_operation > aujourd_hui:
            raise DonneesInvalidesComptabilite("Impossible d'enregistrer une opération à une date future.")
        if montant is None or int(montant) <= 0:
            raise DonneesInvalidesComptabilite("Le montant doit être > 0.")

        compte = await self._obtenir(CompteComptable, compte_id, "Compte introuvable.")
        if not compte.actif:
            raise DonneesInvalidesComptabilite("Le compte est désactivé.")
        if compte.type_compte not in TYPES_COMPTE_AUTORISES[type_operation]:
            raise DonneesInvalidesComptabilite(
                f"Le compte {compte.code_ohada} ({compte.type_compte.value}) n'accepte pas une {type_operation.value}."
            )

        tresorerie = await self._obtenir(Tresorerie, tresorerie_id, "Trésorerie introuvable.")
        if not tresorerie.actif:
            raise DonneesInvalidesComptabilite("La trésorerie est désactivée.")

        semaine = await self._semaine_materialisee(semaine_pour_date(date_operation), commit=False)
        if semaine.cloture:
            raise SemaineCloturee(f"La semaine {semaine.code} {semaine.annee} est clôturée.")

        operation = OperationComptable(
            date_operation=date_operation,
            type_operation=type_operation,
            montant=int(montant),
            observation=observation,
            compte_id=compte.id,
            tresorerie_id=tresorerie.id,
            semaine_id=semaine.id,
            actif=True,
            cree_par=cree_par,
        )
        tresorerie.solde += _montant_signe(type_operation, int(montant))

        self._session.add(operation)
        await self._session.commit()
        await self._session.refresh(operation)

        logger.info(
            "operation_comptable_enregistree operation_id=%s type=%s montant=%s semaine=%s",
            operation.id,
            type_operation.value,
            montant,
            semaine.code,
        )
        return operation

    async def lister_operations(
        self,
        *,
        annee: int,
        code: str | None = None,
        inclure_inactives: bool = False,
    ) -> list[OperationComptable]:
        stmt = (
            select(OperationComptable)
            .join(SemaineComptable, SemaineComptable.id == OperationComptable.semaine_id)
            .where(SemaineComptable.annee == annee)
            .order_by(OperationComptable.date_operation.asc(), OperationComptable.cree_le.asc())
        )
        if code is not None:
            stmt = stmt.where(SemaineComptable.code == code)
        if not inclure_inactives:
            stmt = stmt.where(OperationComptable.actif.is_(True))
        return list((await self._session.execute(stmt)).unique().scalars().all())

    async def desactiver_operation(self, operation_id: UUID) -> OperationComptable:
        """Retire une opération d'une semaine ouverte et reverse son effet sur le solde."""

        operation = await self._obtenir(OperationComptable, operation_id, "Opération introuvable.")
        if not operation.actif:
            return operation

        semaine = await self._obtenir(SemaineComptable, operation.semaine_id, "Semaine introuvable.")
        if semaine.cloture:
            raise SemaineCloturee(f"La semaine {semaine.code} {semaine.annee} est clôturée.")

        tresorerie = await self._obtenir(Tresorerie, operation.tresorerie_id, "Trésorerie introuvable.")
        tresorerie.solde -= _montant_signe(operation.type_operation, operation.montant)
        operation.actif = False
        await self._session.commit()

        logger.info("operation_comptable_desactivee operation_id=%s", operation_id)
        return operation

    # ------------------------------------------------------------------
    # Semaines et clôtures
    # ------------------------------------------------------------------

    async def lister_semaines(self, annee: int) -> list[SemaineComptable]:
        semaines = [await self._semaine_materialisee(p, commit=False) for p in generer_semaines_annee(annee)]
        await self._session.commit()
        return semaines

    async def cloturer_semaine(self, annee: int, code: str, *, aujourd_hui: date | None = None) -> SemaineComptable:
        aujourd_hui = aujourd_hui or maintenant_utc().date()
        semaine = await self._semaine_par_code(annee, code)

        if semaine.cloture:
            return semaine
        if not semaine.date_fin < aujourd_hui:
            raise DonneesInvalidesComptabilite(f"La semaine {code} n'est pas terminée.")

        self._marquer_cloturee(semaine)
        await self._notifier_admins(f"Semaine {code} {annee} clôturée.")
        await self._session.commit()
        logger.info("semaine_cloturee annee=%s code=%s", annee, code)
        return semaine

    async def decloturer_semaine(self, annee: int, code: str, *, par_user_id: UUID | None = None) -> SemaineComptable:
        semaine = await self._semaine_par_code(annee, code)
        if not semaine.cloture:
            return semaine

        semaine.cloture = False
        semaine.cloturee_le = None
        await journaliser_action(
            self._session,
            action="decloture_semaine",
            ressource="semaine_comptable",
            ressource_id=str(semaine.id),
            user_id=par_user_id,
            donnees={"annee": annee, "code": code},
        )
        await self._session.commit()

        logger.info("semaine_decloturee annee=%s code=%s par=%s", annee, code, par_user_id)
        return semaine

    async def cloturer_annee(self, annee: int) -> list[str]:
        """Clôture toutes les semaines de l'année. Retourne les codes nouvellement clôturés."""

        clotures: list[str] = []
        for periode in generer_semaines_annee(annee):
            semaine = await self._semaine_materialisee(periode, commit=False)
            if not semaine.cloture:
                self._marquer_cloturee(semaine)
                clotures.append(semaine.code)
        await self._session.commit()

        logger.info("annee_cloturee annee=%s semaines=%s", annee, len(clotures))
        return clotures

    async def verifier_auto_cloture(self, annee: int, *, aujourd_hui: date | None = None) -> list[str]:
        """Clôture d'office les semaines terminées depuis au moins `delai_cloture_jours`."""

        aujourd_hui = aujourd_hui or maintenant_utc().date()
        clotures: list[str] = []
        for periode in generer_semaines_annee(annee):
            if (aujourd_hui - periode.date_fin).days < self._delai:
                continue
            semaine = await self._semaine_materialisee(periode, commit=False)
            if not semaine.cloture:
                self._marquer_cloturee(semaine)
                clotures.append(semaine.code)
        if clotures:
            await self._notifier_admins(f"Clôture automatique {annee} : {', '.join(clotures)}.")
        await self._session.commit()

        if clotures:
            logger.info("auto_cloture annee=%s semaines=%s", annee, ",".join(clotures))
        return clotures

    async def statut_cloture(self, annee: int, code: str, *, aujourd_hui: date | None = None) -> StatutCloture:
        aujourd_hui = aujourd_hui or maintenant_utc().date()
        try:
            semaine = await self._semaine_par_code(annee, code)
        except ElementComptableIntrouvable:
            return StatutCloture(existe=False, cloture=False, peut_cloturer=False, raison="Semaine non trouvée")

        if semaine.cloture:
            return StatutCloture(existe=True, cloture=True, peut_cloturer=False, raison="Semaine déjà clôturée")

        terminee = semaine.date_fin < aujourd_hui
        if not terminee:
            return StatutCloture(
                existe=True,
                cloture=False,
                peut_cloturer=False,
                raison="Semaine en cours, ne peut pas être clôturée",
            )

        return StatutCloture(
            existe=True,
            cloture=False,
            peut_cloturer=True,
            raison="Semaine terminée, peut être clôturée",
            jours_avant_auto_cloture=max(0, self._delai - (aujourd_hui - semaine.date_fin).days),
        )

    async def semaines_non_cloturees(self, annee: int) -> list[SemaineComptable]:
        return [s for s in await self.lister_semaines(annee) if not s.cloture]

    async def semaines_cloturees(self, annee: int) -> list[SemaineComptable]:
        return [s for s in await self.lister_semaines(annee) if s.cloture]

    async def resume_semaine(self, annee: int, code: str) -> ResumeSemaine:
        semaine = await self._semaine_par_code(annee, code)
        operations = await self.lister_operations(annee=annee, code=code)

        recettes = sum(o.montant for o in operations if o.type_operation == TypeOperationComptable.RECETTE)
        depenses = sum(o.montant for o in operations if o.type_operation == TypeOperationComptable.DEPENSE)
        return ResumeSemaine(
            annee=annee,
            code=code,
            date_debut=semaine.date_debut,
            date_fin=semaine.date_fin,
            cloture=semaine.cloture,
            recettes=recettes,
            depenses=depenses,
            solde=recettes - depenses,
            nombre_operations=len(operations),
        )

    # ------------------------------------------------------------------
    # États : grand livre et balance
    # ------------------------------------------------------------------

    async def grand_livre(self, debut: date, fin: date, *, classe: str | None = None) -> GrandLivre:
        """Opérations actives de la période, regroupées par compte (tri OHADA).

        Vue trésorerie : une recette est portée au crédit du compte, une
        dépense au débit. Le solde d'un compte vaut crédit - débit.
        """

        if fin < debut:
            raise DonneesInvalidesComptabilite("La date de fin précède la date de début.")

        stmt = (
            select(OperationComptable, CompteComptable)
            .join(CompteComptable, CompteComptable.id == OperationComptable.compte_id)
            .where(OperationComptable.actif.is_(True))
            .where(OperationComptable.date_operation >= debut)
            .where(OperationComptable.date_operation <= fin)
            .order_by(
                CompteComptable.code_ohada.asc(),
                OperationComptable.date_operation.asc(),
                OperationComptable.cree_le.asc(),
            )
        )
        if classe:
            stmt = stmt.where(CompteComptable.code_ohada.startswith(str(classe)))

        par_compte: dict[UUID, tuple[CompteComptable, list[MouvementGrandLivre]]] = {}
        for operation, compte in (await self._session.execute(stmt)).all():
            _, mouvements = par_compte.setdefault(compte.id, (compte, []))
            precedent = mouvements[-1].solde_cumule if mouvements else 0
            debit = operation.montant if operation.type_operation == TypeOperationComptable.DEPENSE else 0
            credit = operation.montant if operation.type_operation == TypeOperationComptable.RECETTE else 0
            mouvements.append(
                MouvementGrandLivre(
                    operation_id=operation.id,
                    date_operation=operation.date_operation,
                    type_operation=operation.type_operation,
                    observation=operation.observation,
                    debit=debit,
                    credit=credit,
                    solde_cumule=precedent + credit - debit,
                )
            )

        comptes = [
            CompteGrandLivre(
                compte_id=compte.id,
                code_ohada=compte.code_ohada,
                denomination=compte.denomination,
                type_compte=compte.type_compte,
                mouvements=mouvements,
                total_debit=sum(m.debit for m in mouvements),
                total_credit=sum(m.credit for m in mouvements),
            )
            for compte, mouvements in par_compte.values()
        ]
        logger.info(
            "grand_livre debut=%s fin=%s classe=%s comptes=%s", debut.isoformat(), fin.isoformat(), classe, len(comptes)
        )
        return GrandLivre(debut=debut, fin=fin, comptes=comptes)

    async def grand_livre_compte(self, compte_id: UUID, debut: date, fin: date) -> CompteGrandLivre:
        livre = await self.grand_livre(debut, fin)
        for compte in livre.comptes:
            if compte.compte_id == compte_id:
                return compte
        raise ElementComptableIntrouvable("Aucun mouvement pour ce compte sur la période.")

    async def balance(self, debut: date, fin: date) -> Balance:
        livre = await self.grand_livre(debut, fin)
        lignes = [
            LigneBalance(
                compte_id=c.compte_id,
                code_ohada=c.code_ohada,
                denomination=c.denomination,
                type_compte=c.type_compte,
                debit=c.total_debit,
                credit=c.total_credit,
                solde=c.solde,
                nombre_mouvements=len(c.mouvements),
            )
            for c in livre.comptes
        ]
        return Balance(
            debut=debut,
            fin=fin,
            lignes=lignes,
            total_debit=livre.total_debit,
            total_credit=livre.total_credit,
        )

    async def balance_par_classe(self, debut: date, fin: date) -> list[ClasseBalance]:
        balance = await self.balance(debut, fin)
        par_classe: dict[str, list[LigneBalance]] = {}
        for ligne in balance.lignes:
            par_classe.setdefault(ligne.code_ohada[:1], []).append(ligne)

        return [
            ClasseBalance(
                classe=classe,
                denomination=CLASSES_OHADA.get(classe, f"Classe {classe}"),
                lignes=lignes,
                debit=sum(l.debit for l in lignes),
                credit=sum(l.credit for l in lignes),
                solde=sum(l.solde for l in lignes),
            )
            for classe, lignes in sorted(par_classe.items())
        ]

    # ------------------------------------------------------------------

    async def _semaine_par_code(self, annee: int, code: str) -> SemaineComptable:
        for periode in generer_semaines_annee(annee):
            if periode.code == code:
                return await self._semaine_materialisee(periode)
        raise ElementComptableIntrouvable(f"Semaine {code} {annee} introuvable.")

    async def _semaine_materialisee(self, periode: PeriodeSemaine, *, commit: bool = True) -> SemaineComptable:
        """Ligne `semaine_comptable` de la période, créée au premier accès."""

        semaine = (
            await self._session.execute(
                select(SemaineComptable)
                .where(SemaineComptable.annee == periode.annee)
                .where(SemaineComptable.code == periode.code)
            )
        ).scalar_one_or_none()
        if semaine is not None:
            return semaine

        semaine = SemaineComptable(
            annee=periode.annee,
            code=periode.code,
            numero=periode.numero,
            date_debut=periode.date_debut,
            date_fin=periode.date_fin,
            cloture=False,
        )
        self._session.add(semaine)
        await self._session.flush()
        if commit:
            await self._session.commit()
        return semaine

    async def _notifier_admins(self, message: str) -> None:
        await notifier_role(
            self._session,
            code_role=CodeRole.ADMIN.value,
            message=message,
            type_notification=TypeNotification.SUCCES,
        )

    @staticmethod
    def _marquer_cloturee(semaine: SemaineComptable, maintenant: datetime | None = None) -> None:
        semaine.cloture = True
        semaine.cloturee_le = maintenant or maintenant_utc()

    async def _obtenir(self, modele, identifiant: UUID, message: str):
        objet = await self._session.get(modele, identifiant)
        if objet is None:
            raise ElementComptableIntrouvable(message)
        return objet
