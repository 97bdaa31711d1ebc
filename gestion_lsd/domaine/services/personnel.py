from __future__ import annotations

import logging
import re
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import FonctionPersonnel
from gestion_lsd.domaine.modeles.personnel import MembrePersonnel


logger = logging.getLogger(__name__)

_MOTIF_TELEPHONE = re.compile(r"^\d{8,14}$")

_LIBELLES_FONCTION = {
    FonctionPersonnel.LIVREUR: "Un livreur",
    FonctionPersonnel.CUISINIER: "Un cuisinier",
    FonctionPersonnel.VENDEUSE: "Une vendeuse",
}


class ErreurPersonnel(Exception):
    """Erreur générique personnel."""


class DonneesInvalidesPersonnel(ErreurPersonnel):
    pass


class MembrePersonnelIntrouvable(ErreurPersonnel):
    pass


class ConflitPersonnel(ErreurPersonnel):
    """Identifiant (fonction + téléphone) déjà utilisé."""


def construire_identifiant(fonction: FonctionPersonnel, telephone: str) -> str:
    return f"{fonction.value}{telephone}"


def _normaliser_telephone(telephone: str) -> str:
    brut = re.sub(r"[\s.\-]", "", telephone or "")
    if brut.startswith("+"):
        brut = brut[1:]
    if not _MOTIF_TELEPHONE.match(brut):
        raise DonneesInvalidesPersonnel("Le téléphone doit contenir entre 8 et 14 chiffres.")
    return brut


class ServicePersonnel:
    """CRUD livreurs / cuisiniers / vendeuses.

    Suppression logique uniquement (`actif=False`) : un membre désactivé
    disparaît des listes mais reste référencé par les livraisons et
    emplacements passés.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def creer(
        self,
        *,
        fonction: FonctionPersonnel,
        nom: str,
        telephone: str,
        prenoms: str = "",
        email: str | None = None,
        zones: list[str] | None = None,
    ) -> MembrePersonnel:
        if not nom or not nom.strip():
            raise DonneesInvalidesPersonnel("Le nom est obligatoire.")

        telephone = _normaliser_telephone(telephone)
        identifiant = construire_identifiant(fonction, telephone)
        await self._verifier_identifiant_libre(identifiant, fonction)

        membre = MembrePersonnel(
            identifiant=identifiant,
            fonction=fonction,
            nom=nom.strip(),
            prenoms=(prenoms or "").strip(),
            telephone=telephone,
            email=email,
            zones=list(zones or []),
            actif=True,
        )
        self._session.add(membre)
        await self._session.commit()
        await self._session.refresh(membre)

        logger.info("personnel_cree identifiant=%s fonction=%s", identifiant, fonction.value)
        return membre

    async def obtenir(self, membre_id: UUID) -> MembrePersonnel:
        membre = await self._session.get(MembrePersonnel, membre_id)
        if membre is None:
            raise MembrePersonnelIntrouvable("Membre du personnel introuvable.")
        return membre

    async def lister(
        self,
        *,
        fonction: FonctionPersonnel | None = None,
        inclure_inactifs: bool = False,
    ) -> list[MembrePersonnel]:
        stmt = select(MembrePersonnel).order_by(MembrePersonnel.nom.asc(), MembrePersonnel.prenoms.asc())
        if fonction is not None:
            stmt = stmt.where(MembrePersonnel.fonction == fonction)
        if not inclure_inactifs:
            stmt = stmt.where(MembrePersonnel.actif.is_(True))

        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def mettre_a_jour(
        self,
        membre_id: UUID,
        *,
        nom: str | None = None,
        prenoms: str | None = None,
        telephone: str | None = None,
        email: str | None = None,
        zones: list[str] | None = None,
    ) -> MembrePersonnel:
        membre = await self.obtenir(membre_id)

        if telephone is not None:
            telephone = _normaliser_telephone(telephone)
            if telephone != membre.telephone:
                identifiant = construire_identifiant(membre.fonction, telephone)
                await self._verifier_identifiant_libre(identifiant, membre.fonction)
                membre.telephone = telephone
                membre.identifiant = identifiant

        if nom is not None:
            if not nom.strip():
                raise DonneesInvalidesPersonnel("Le nom est obligatoire.")
            membre.nom = nom.strip()
        if prenoms is not None:
            membre.prenoms = prenoms.strip()
        if email is not None:
            membre.email = email
        if zones is not None:
            membre.zones = list(zones)

        await self._session.commit()
        await self._session.refresh(membre)
        return membre

    async def desactiver(self, membre_id: UUID) -> MembrePersonnel:
        membre = await self.obtenir(membre_id)
        membre.actif = False
        await self._session.commit()
        logger.info("personnel_desactive identifiant=%s", membre.identifiant)
        return membre

    async def reactiver(self, membre_id: UUID) -> MembrePersonnel:
        membre = await self.obtenir(membre_id)
        membre.actif = True
        await self._session.commit()
        return membre

    async def obtenir_actif(self, membre_id: UUID, *, fonction: FonctionPersonnel) -> MembrePersonnel:
        """Membre actif d’une fonction donnée (assignation livreur, vendeuse d’un stand...)."""

        membre = await self._session.get(MembrePersonnel, membre_id)
        if membre is None or not membre.actif or membre.fonction != fonction:
            raise MembrePersonnelIntrouvable(f"Aucun {fonction.value} actif avec cet identifiant.")
        return membre

    async def _verifier_identifiant_libre(self, identifiant: str, fonction: FonctionPersonnel) -> None:
        # Un membre désactivé garde son identifiant : on ne le recrée pas, on le réactive.
        res = await self._session.execute(
            select(MembrePersonnel.id).where(MembrePersonnel.identifiant == identifiant)
        )
        if res.scalar_one_or_none() is not None:
            raise ConflitPersonnel(f"{_LIBELLES_FONCTION[fonction]} avec ce téléphone existe déjà.")
