from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from gestion_lsd.domaine.enums.types import StatutPresence, TypeNotification


class RequeteHeartbeat(BaseModel):
    statut: StatutPresence = StatutPresence.ONLINE


class PresenceLecture(BaseModel):
    user_id: UUID
    nom_utilisateur: str
    email: str
    role: str | None
    statut: StatutPresence
    vu_le: datetime | None
    actif_reellement: bool

    class Config:
        from_attributes = True


class MetriquesPresenceLecture(BaseModel):
    total: int
    en_ligne: int
    absents: int
    hors_ligne: int
    reellement_actifs: int

    class Config:
        from_attributes = True


class NotificationCreation(BaseModel):
    user_id: UUID
    message: str
    type_notification: TypeNotification = TypeNotification.INFO


class NotificationLecture(BaseModel):
    id: UUID
    user_id: UUID
    message: str
    type_notification: TypeNotification
    lue: bool
    cree_le: datetime

    class Config:
        from_attributes = True
