"""Présence des utilisateurs (tableau de bord "qui est en ligne").

Le client envoie un heartbeat régulier avec son statut déclaré. Le statut
déclaré ne suffit pas : un onglet fermé brutalement reste `online` en base.
Un utilisateur n’est donc *réellement actif* que si son statut est `online`
ET que son dernier heartbeat date de moins de `seuil_presence_secondes`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.core.temps import en_utc, maintenant_utc
from gestion_lsd.domaine.enums.types import CodeRole, StatutPresence
from gestion_lsd.domaine.modeles.auth import Role, User, UserRole
from gestion_lsd.domaine.modeles.presence import Presence


logger = logging.getLogger(__name__)


class ErreurPresence(Exception):
    """Erreur générique présence."""


class UtilisateurPresenceIntrouvable(ErreurPresence):
    pass


@dataclass(frozen=True)
class LignePresence:
    user_id: UUID
    nom_utilisateur: str
    email: str
    role: str | None
    statut: StatutPresence
    vu_le: datetime | None
    actif_reellement: bool


@dataclass(frozen=True)
class MetriquesPresence:
    total: int
    en_ligne: int
    absents: int
    hors_ligne: int
    reellement_actifs: int


def _choisir_role(codes: list[str]) -> str | None:
    if not codes:
        return None
    # admin prioritaire pour l’affichage
    return CodeRole.ADMIN.value if CodeRole.ADMIN.value in codes else codes[0]


def est_reellement_actif(
    statut: StatutPresence,
    vu_le: datetime | None,
    *,
    maintenant: datetime,
    seuil_secondes: int,
) -> bool:
    if statut != StatutPresence.ONLINE or vu_le is None:
        return False
    return en_utc(maintenant) - en_utc(vu_le) < timedelta(seconds=seuil_secondes)


class ServicePresence:
    def __init__(self, session: AsyncSession, *, seuil_secondes: int | None = None) -> None:
        self._session = session
        self._seuil = seuil_secondes if seuil_secondes is not None else parametres_application.seuil_presence_secondes

    async def heartbeat(
        self,
        user: User,
        *,
        statut: StatutPresence = StatutPresence.ONLINE,
        maintenant: datetime | None = None,
    ) -> Presence:
        """Enregistre (upsert) le statut courant de l’utilisateur."""

        maintenant = maintenant or maintenant_utc()
        role = await self._role_principal(user.id)

        presence = (
            await self._session.execute(select(Presence).where(Presence.user_id == user.id))
        ).scalar_one_or_none()
        if presence is None:
            presence = Presence(user_id=user.id, statut=statut, vu_le=maintenant)
            self._session.add(presence)
        else:
            presence.statut = statut
            presence.vu_le = maintenant

        presence.nom_utilisateur = user.nom_affiche
        presence.role = role

        await self._session.commit()
        await self._session.refresh(presence)
        return presence

    async def obtenir_presence(self, user_id: UUID, *, maintenant: datetime | None = None) -> LignePresence:
        user = await self._session.get(User, user_id)
        if user is None:
            raise UtilisateurPresenceIntrouvable("Utilisateur introuvable.")

        presence = (
            await self._session.execute(
                select(Presence).where(Presence.user_id == user_id).execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        role = presence.role if presence is not None else await self._role_principal(user_id)
        return self._ligne(user, presence, role, maintenant or maintenant_utc())

    async def lister_utilisateurs_avec_presence(self, *, maintenant: datetime | None = None) -> list[LignePresence]:
        """Tous les utilisateurs actifs, `offline` par défaut si aucun heartbeat."""

        maintenant = maintenant or maintenant_utc()

        res = await self._session.execute(
            select(User, Presence)
            .outerjoin(Presence, Presence.user_id == User.id)
            .where(User.actif.is_(True))
            .order_by(User.nom_affiche.asc())
            .execution_options(populate_existing=True)
        )
        roles = await self._roles_principaux()
        lignes: list[LignePresence] = []
        for user, presence in res.all():
            role = presence.role if presence is not None else roles.get(user.id)
            lignes.append(self._ligne(user, presence, role, maintenant))
        return lignes

    async def metriques(self, *, maintenant: datetime | None = None) -> MetriquesPresence:
        lignes = await self.lister_utilisateurs_avec_presence(maintenant=maintenant)
        return MetriquesPresence(
            total=len(lignes),
            en_ligne=sum(1 for l in lignes if l.statut == StatutPresence.ONLINE),
            absents=sum(1 for l in lignes if l.statut == StatutPresence.AWAY),
            hors_ligne=sum(1 for l in lignes if l.statut == StatutPresence.OFFLINE),
            reellement_actifs=sum(1 for l in lignes if l.actif_reellement),
        )

    async def nettoyer_presence(self, user_id: UUID) -> None:
        """Déconnexion explicite : l’utilisateur redevient `offline`."""

        await self._session.execute(delete(Presence).where(Presence.user_id == user_id))
        await self._session.commit()

    async def expirer_presences(self, *, maintenant: datetime | None = None) -> int:
        """Passe `offline` les présences dont le heartbeat a dépassé le seuil."""

        maintenant = maintenant or maintenant_utc()
        limite = maintenant - timedelta(seconds=self._seuil)

        res = await self._session.execute(
            update(Presence)
            .where(Presence.statut != StatutPresence.OFFLINE)
            .where(Presence.vu_le <= limite)
            .values(statut=StatutPresence.OFFLINE)
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()

        nombre = int(res.rowcount or 0)
        if nombre:
            logger.info("presences_expirees nombre=%s seuil_secondes=%s", nombre, self._seuil)
        return nombre

    def _ligne(self, user: User, presence: Presence | None, role: str | None, maintenant: datetime) -> LignePresence:
        if presence is None:
            statut = StatutPresence.OFFLINE
            vu_le = None
        else:
            statut = presence.statut
            vu_le = en_utc(presence.vu_le)

        return LignePresence(
            user_id=user.id,
            nom_utilisateur=user.nom_affiche,
            email=user.email,
            role=role,
            statut=statut,
            vu_le=vu_le,
            actif_reellement=est_reellement_actif(statut, vu_le, maintenant=maintenant, seuil_secondes=self._seuil),
        )

    async def _role_principal(self, user_id: UUID) -> str | None:
        res = await self._session.execute(
            select(Role.code)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.code.asc())
        )
        return _choisir_role([r[0] for r in res.all()])

    async def _roles_principaux(self) -> dict[UUID, str]:
        res = await self._session.execute(select(UserRole.user_id, Role.code).join(Role, Role.id == UserRole.role_id))
        codes: dict[UUID, list[str]] = {}
        for user_id, code in res.all():
            codes.setdefault(user_id, []).append(code)
        return {user_id: _choisir_role(sorted(c)) for user_id, c in codes.items()}
