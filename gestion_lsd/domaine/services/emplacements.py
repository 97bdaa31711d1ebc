from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import FamilleEmplacement, FonctionPersonnel, TypeOperationEmplacement
from gestion_lsd.domaine.modeles.emplacements import Emplacement, OperationEmplacement
from gestion_lsd.domaine.services.adresses import normaliser_departement
from gestion_lsd.domaine.services.personnel import MembrePersonnelIntrouvable, ServicePersonnel


logger = logging.getLogger(__name__)

JOURS_SEMAINE = ("lun", "mar", "mer", "jeu", "ven", "sam", "dim")

_MOTIF_HEURE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ErreurEmplacement(Exception):
    """Erreur générique emplacements."""


class DonneesInvalidesEmplacement(ErreurEmplacement):
    pass


class EmplacementIntrouvable(ErreurEmplacement):
    pass


class OperationEmplacementInvalide(ErreurEmplacement):
    """Opération incohérente avec l’état courant (déjà ouvert, désactivé...)."""


@dataclass(frozen=True)
class Position:
    departement: str | None = None
    commune: str | None = None
    arrondissement: str | None = None
    quartier: str | None = None
    latitude: float = 0.0
    longitude: float = 0.0


def valider_horaires(horaires: dict | None) -> dict:
    """Vérifie les horaires `{jour: {ouvert, ouverture, fermeture}}`.

    Jours absents = fermé.
    """

    resultat: dict = {}
    for jour, creneau in (horaires or {}).items():
        if jour not in JOURS_SEMAINE:
            raise DonneesInvalidesEmplacement(f"Jour inconnu : {jour}.")

        ouvert = bool(creneau.get("ouvert", False))
        ouverture = creneau.get("ouverture")
        fermeture = creneau.get("fermeture")
        if ouvert:
            if not (ouverture and _MOTIF_HEURE.match(ouverture) and fermeture and _MOTIF_HEURE.match(fermeture)):
                raise DonneesInvalidesEmplacement(f"Horaires invalides pour {jour} (format HH:MM).")
            if ouverture >= fermeture:
                raise DonneesInvalidesEmplacement(f"Pour {jour}, l’ouverture doit précéder la fermeture.")

        resultat[jour] = {"ouvert": ouvert, "ouverture": ouverture, "fermeture": fermeture}
    return resultat


def _position_courante(e: Emplacement) -> dict:
    return {
        "departement": e.departement,
        "commune": e.commune,
        "arrondissement": e.arrondissement,
        "quartier": e.quartier,
        "latitude": e.latitude,
        "longitude": e.longitude,
    }


class ServiceEmplacements:
    """Entrepôts, points de vente et stands.

    Les opérations de terrain (ouverture, fermeture, changement de vendeuse,
    déplacement) modifient l’état courant ET ajoutent une ligne au journal.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def creer(
        self,
        *,
        denomination: str,
        famille: FamilleEmplacement,
        sous_type: str | None = None,
        theme: str | None = None,
        theme_description: str | None = None,
        position: Position | None = None,
        horaires: dict | None = None,
    ) -> Emplacement:
        if not denomination or not denomination.strip():
            raise DonneesInvalidesEmplacement("La dénomination est obligatoire.")

        position = position or Position()
        emplacement = Emplacement(
            denomination=denomination.strip(),
            famille=famille,
            sous_type=sous_type,
            theme=theme,
            theme_description=theme_description,
            horaires=valider_horaires(horaires),
            est_ouvert=False,
            actif=True,
        )
        self._appliquer_position(emplacement, position)

        self._session.add(emplacement)
        await self._session.commit()
        await self._session.refresh(emplacement)

        logger.info("emplacement_cree emplacement_id=%s famille=%s", emplacement.id, famille.value)
        return emplacement

    async def obtenir(self, emplacement_id: UUID) -> Emplacement:
        emplacement = await self._session.get(Emplacement, emplacement_id)
        if emplacement is None:
            raise EmplacementIntrouvable("Emplacement introuvable.")
        return emplacement

    async def lister(
        self,
        *,
        famille: FamilleEmplacement | None = None,
        actif: bool | None = True,
        q: str | None = None,
    ) -> list[Emplacement]:
        stmt = select(Emplacement).order_by(Emplacement.denomination.asc())
        if famille is not None:
            stmt = stmt.where(Emplacement.famille == famille)
        if actif is not None:
            stmt = stmt.where(Emplacement.actif.is_(actif))
        if q:
            motif = f"%{q.strip()}%"
            stmt = stmt.where(or_(Emplacement.denomination.ilike(motif), Emplacement.theme.ilike(motif)))

        res = await self._session.execute(stmt)
        return list(res.scalars().all())

    async def lister_points_de_vente(self) -> list[Emplacement]:
        return await self.lister(famille=FamilleEmplacement.POINT_DE_VENTE, actif=True)

    async def mettre_a_jour(
        self,
        emplacement_id: UUID,
        *,
        denomination: str | None = None,
        sous_type: str | None = None,
        theme: str | None = None,
        theme_description: str | None = None,
        horaires: dict | None = None,
    ) -> Emplacement:
        emplacement = await self.obtenir(emplacement_id)

        if denomination is not None:
            if not denomination.strip():
                raise DonneesInvalidesEmplacement("La dénomination est obligatoire.")
            emplacement.denomination = denomination.strip()
        if sous_type is not None:
            emplacement.sous_type = sous_type
        if theme is not None:
            emplacement.theme = theme
        if theme_description is not None:
            emplacement.theme_description = theme_description
        if horaires is not None:
            emplacement.horaires = valider_horaires(horaires)

        await self._session.commit()
        await self._session.refresh(emplacement)
        return emplacement

    async def desactiver(self, emplacement_id: UUID) -> Emplacement:
        emplacement = await self.obtenir(emplacement_id)
        emplacement.actif = False
        emplacement.est_ouvert = False
        await self._session.commit()
        return emplacement

    async def reactiver(self, emplacement_id: UUID) -> Emplacement:
        emplacement = await self.obtenir(emplacement_id)
        emplacement.actif = True
        await self._session.commit()
        return emplacement

    # ------------------------------------------------------------------
    # Opérations de terrain
    # ------------------------------------------------------------------

    async def ouvrir(self, emplacement_id: UUID, *, auteur_id: UUID | None = None) -> Emplacement:
        emplacement = await self._obtenir_actif(emplacement_id)
        if emplacement.est_ouvert:
            raise OperationEmplacementInvalide("L’emplacement est déjà ouvert.")

        emplacement.est_ouvert = True
        self._journaliser(emplacement, TypeOperationEmplacement.OUVERTURE, {}, auteur_id)
        await self._session.commit()
        return emplacement

    async def fermer(self, emplacement_id: UUID, *, auteur_id: UUID | None = None) -> Emplacement:
        emplacement = await self.obtenir(emplacement_id)
        if not emplacement.est_ouvert:
            raise OperationEmplacementInvalide("L’emplacement est déjà fermé.")

        emplacement.est_ouvert = False
        self._journaliser(emplacement, TypeOperationEmplacement.FERMETURE, {}, auteur_id)
        await self._session.commit()
        return emplacement

    async def changer_vendeur(
        self,
        emplacement_id: UUID,
        *,
        vendeuse_id: UUID,
        auteur_id: UUID | None = None,
    ) -> Emplacement:
        emplacement = await self._obtenir_actif(emplacement_id)
        try:
            vendeuse = await ServicePersonnel(self._session).obtenir_actif(
                vendeuse_id,
                fonction=FonctionPersonnel.VENDEUSE,
            )
        except MembrePersonnelIntrouvable as e:
            raise OperationEmplacementInvalide(str(e)) from e

        details = {
            "ancien_vendeur_id": str(emplacement.vendeur_id) if emplacement.vendeur_id else None,
            "ancien_vendeur_nom": emplacement.vendeur_nom,
            "nouveau_vendeur_id": str(vendeuse.id),
            "nouveau_vendeur_nom": vendeuse.nom_complet,
        }
        emplacement.vendeur_id = vendeuse.id
        emplacement.vendeur_nom = vendeuse.nom_complet
        self._journaliser(emplacement, TypeOperationEmplacement.CHANGEMENT_VENDEUR, details, auteur_id)

        await self._session.commit()
        return emplacement

    async def deplacer(
        self,
        emplacement_id: UUID,
        *,
        position: Position,
        auteur_id: UUID | None = None,
    ) -> Emplacement:
        emplacement = await self._obtenir_actif(emplacement_id)

        ancienne = _position_courante(emplacement)
        self._appliquer_position(emplacement, position)
        self._journaliser(
            emplacement,
            TypeOperationEmplacement.DEPLACEMENT,
            {"ancienne_position": ancienne, "nouvelle_position": _position_courante(emplacement)},
            auteur_id,
        )

        await self._session.commit()
        return emplacement

    async def historique(self, emplacement_id: UUID) -> list[OperationEmplacement]:
        await self.obtenir(emplacement_id)
        res = await self._session.execute(
            select(OperationEmplacement)
            .where(OperationEmplacement.emplacement_id == emplacement_id)
            .order_by(OperationEmplacement.effectuee_le.desc())
        )
        return list(res.scalars().all())

    async def _obtenir_actif(self, emplacement_id: UUID) -> Emplacement:
        emplacement = await self.obtenir(emplacement_id)
        if not emplacement.actif:
            raise OperationEmplacementInvalide("L’emplacement est désactivé.")
        return emplacement

    @staticmethod
    def _appliquer_position(emplacement: Emplacement, position: Position) -> None:
        emplacement.departement = normaliser_departement(position.departement) if position.departement else None
        emplacement.commune = position.commune
        emplacement.arrondissement = position.arrondissement
        emplacement.quartier = position.quartier
        emplacement.latitude = float(position.latitude or 0.0)
        emplacement.longitude = float(position.longitude or 0.0)

    def _journaliser(
        self,
        emplacement: Emplacement,
        type_operation: TypeOperationEmplacement,
        details: dict,
        auteur_id: UUID | None,
    ) -> None:
        self._session.add(
            OperationEmplacement(
                emplacement_id=emplacement.id,
                type_operation=type_operation,
                details=details,
                auteur_id=auteur_id,
            )
        )
        logger.info(
            "emplacement_operation emplacement_id=%s type=%s auteur_id=%s",
            emplacement.id,
            type_operation.value,
            auteur_id,
        )
