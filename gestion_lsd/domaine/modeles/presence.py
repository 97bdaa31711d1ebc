from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.enums.types import StatutPresence, TypeNotification
from gestion_lsd.domaine.modeles.base import BaseModele, ModeleHorodate, type_enum


class Presence(BaseModele):
    """Dernier état de présence connu d’un utilisateur.

    Une ligne par utilisateur, réécrite à chaque heartbeat. L’absence de ligne
    équivaut à `offline`.
    """

    __tablename__ = "presence"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("user.id"), nullable=False, unique=True)

    statut: Mapped[StatutPresence] = mapped_column(type_enum(StatutPresence, "statut_presence"), nullable=False)
    vu_le: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)

    # dénormalisé pour l’affichage du tableau de bord
    nom_utilisateur: Mapped[str | None] = mapped_column(String(200), nullable=True)
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)

    user = relationship("User")


class Notification(ModeleHorodate):
    __tablename__ = "notification"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("user.id"), nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False)
    type_notification: Mapped[TypeNotification] = mapped_column(
        type_enum(TypeNotification, "type_notification"),
        nullable=False,
        default=TypeNotification.INFO,
    )
    lue: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


Index("ix_presence_statut_vu_le", Presence.statut, Presence.vu_le)
Index("ix_notification_user_cree_le", Notification.user_id, Notification.cree_le)
