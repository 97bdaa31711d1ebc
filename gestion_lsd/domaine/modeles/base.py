from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from gestion_lsd.core.temps import maintenant_utc


class BaseModele(DeclarativeBase):
    """Base declarative SQLAlchemy.

    Les noms d’attributs restent en français, comme le vocabulaire métier.
    """


class ModeleHorodate(BaseModele):
    """Mixin de dates techniques."""

    __abstract__ = True

    cree_le: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=maintenant_utc, nullable=False)
    mis_a_jour_le: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=maintenant_utc,
        onupdate=maintenant_utc,
        nullable=False,
    )


def type_enum(classe: type[enum.Enum], nom: str) -> Enum:
    """Enum stocké en VARCHAR (pas d’enum natif PostgreSQL).

    On persiste la *valeur* ("en_attente") et non le nom du membre.
    """

    return Enum(
        classe,
        name=nom,
        native_enum=False,
        length=50,
        values_callable=lambda membres: [m.value for m in membres],
    )
