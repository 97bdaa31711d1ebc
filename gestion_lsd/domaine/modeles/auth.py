from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestion_lsd.domaine.modeles.base import ModeleHorodate


class Role(ModeleHorodate):
    """Rôle applicatif (admin, superviseur, vendeur, cuisinier, livreur)."""

    __tablename__ = "role"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    libelle: Mapped[str] = mapped_column(String(120), nullable=False)
    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class User(ModeleHorodate):
    __tablename__ = "user"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    nom_affiche: Mapped[str] = mapped_column(String(200), nullable=False)
    telephone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    mot_de_passe_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    dernier_login_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    roles: Mapped[list["UserRole"]] = relationship(
        "UserRole",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class UserRole(ModeleHorodate):
    __tablename__ = "user_role"
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_role_user_id_role_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("user.id"), nullable=False, index=True)
    role_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("role.id"), nullable=False, index=True)

    user: Mapped[User] = relationship("User", back_populates="roles")
    role: Mapped[Role] = relationship("Role")
