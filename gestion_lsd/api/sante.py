from __future__ import annotations

from fastapi import APIRouter

routeur_sante = APIRouter(tags=["sante"])


@routeur_sante.get("/health")
async def health() -> dict[str, str]:
    """Sonde de vie (ignorée par l’audit HTTP)."""

    return {"statut": "ok", "service": "gestion-lsd"}
