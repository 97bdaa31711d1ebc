from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.modeles.base import BaseModele


class AuditLog(BaseModele):
    """Journal d'audit (append-only).

    Deux sources :
    - le middleware HTTP (action="http_request")
    - les actions d'administration (promotion admin, déclôture comptable, ...)

    Aucune mise à jour ni suppression : pas d'endpoint d'écriture, pas de
    session.delete sur ce modèle.
    """

    __tablename__ = "audit_log"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # nullable pour les appels anonymes (login, API interne sans JWT)
    user_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("user.id"), nullable=True, index=True)

    cree_le: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)

    action: Mapped[str] = mapped_column(String(120), nullable=False)
    ressource: Mapped[str] = mapped_column(String(120), nullable=False)
    ressource_id: Mapped[str | None] = mapped_column(String(120), nullable=True)

    methode_http: Mapped[str | None] = mapped_column(String(20), nullable=True)
    chemin: Mapped[str | None] = mapped_column(String(300), nullable=True)

    statut_http: Mapped[int | None] = mapped_column(nullable=True)

    donnees: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    ip: Mapped[str | None] = mapped_column(String(60), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    user = relationship("User")


Index("ix_audit_log_action_cree_le", AuditLog.action, AuditLog.cree_le)
