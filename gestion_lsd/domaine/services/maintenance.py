from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.services.comptabilite import ServiceComptabilite
from gestion_lsd.domaine.services.notifications import ServiceNotifications
from gestion_lsd.domaine.services.presence import ServicePresence


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RapportMaintenance:
    notifications_supprimees: int
    presences_expirees: int
    semaines_cloturees: dict[int, list[str]]

    @property
    def nombre_semaines_cloturees(self) -> int:
        return sum(len(codes) for codes in self.semaines_cloturees.values())


async def executer_maintenance(session: AsyncSession, *, maintenant: datetime | None = None) -> RapportMaintenance:
    """Tâche périodique (cron).

    1. purge des notifications anciennes
    2. passage `offline` des présences périmées
    3. auto-clôture comptable (année courante et précédente)
    """

    maintenant = maintenant or maintenant_utc()
    aujourd_hui = maintenant.date()

    notifications = await ServiceNotifications(session).nettoyer_anciennes(maintenant=maintenant)
    presences = await ServicePresence(session).expirer_presences(maintenant=maintenant)

    compta = ServiceComptabilite(session)
    semaines: dict[int, list[str]] = {}
    for annee in (aujourd_hui.year - 1, aujourd_hui.year):
        semaines[annee] = await compta.verifier_auto_cloture(annee, aujourd_hui=aujourd_hui)

    rapport = RapportMaintenance(
        notifications_supprimees=notifications,
        presences_expirees=presences,
        semaines_cloturees=semaines,
    )
    logger.info(
        "maintenance_ok notifications_supprimees=%s presences_expirees=%s semaines_cloturees=%s",
        rapport.notifications_supprimees,
        rapport.presences_expirees,
        rapport.nombre_semaines_cloturees,
    )
    return rapport
