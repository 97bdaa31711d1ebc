from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.core.base_donnees import fournir_session_async


async def fournir_session() -> AsyncIterator[AsyncSession]:
    """Dépendance FastAPI : fournit une session SQLAlchemy asynchrone."""

    async for session in fournir_session_async():
        yield session


def verifier_acces_interne(
    x_cle_interne: str | None = Header(default=None, alias="X-CLE-INTERNE"),
) -> None:
    """Contrôle d’accès minimal (API interne).

    Règle : un header technique doit être présent.
    """

    if x_cle_interne is None or not x_cle_interne.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Accès interne refusé (header X-CLE-INTERNE manquant).",
        )
