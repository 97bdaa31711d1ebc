from __future__ import annotations

import json
import logging
from typing import Any
from uuid import UUID

import jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from gestion_lsd.api.dependances_auth import extraire_bearer
from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.core.securite import decoder_token_acces
from gestion_lsd.core.temps import maintenant_utc
from gestion_lsd.domaine.modeles.audit import AuditLog


logger = logging.getLogger(__name__)

CHEMINS_IGNORES = frozenset({"/health"})
TAILLE_MAX_CORPS = 10_000


class MiddlewareAudit(BaseHTTPMiddleware):
    """Middleware d’audit automatique.

    - Journalise chaque requête (hors /health) en append-only.
    - Associe l'utilisateur si un Bearer token valide est fourni.

    Best effort : une erreur d'audit ne casse jamais la route.
    """

    def __init__(self, app: Any, *, session_factory: Any):
        super().__init__(app)
        self._session_factory = session_factory

    async def dispatch(self, request: Request, call_next):
        if request.url.path in CHEMINS_IGNORES:
            return await call_next(request)

        # lu avant call_next : le flux n'est plus disponible ensuite
        donnees = await self._lire_corps(request)

        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            await self._audit(request, response, donnees)

    @staticmethod
    async def _lire_corps(request: Request) -> dict | None:
        if request.method.upper() in {"GET", "HEAD", "OPTIONS"}:
            return None

        corps = await request.body()
        if not corps or len(corps) > TAILLE_MAX_CORPS:
            return None
        try:
            donnees = json.loads(corps.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return {"brut": corps[:200].decode("utf-8", errors="replace")}

        if isinstance(donnees, dict):
            # jamais de mot de passe en clair dans le journal
            for cle in ("mot_de_passe", "password"):
                if cle in donnees:
                    donnees[cle] = "***"
            return donnees
        return {"valeur": donnees}

    @staticmethod
    def _utilisateur(request: Request) -> UUID | None:
        token = extraire_bearer(request.headers.get("authorization"))
        if not token:
            return None
        try:
            payload = decoder_token_acces(token, secret=parametres_application.jwt_secret)
            return UUID(payload.get("sub"))
        except (jwt.PyJWTError, TypeError, ValueError):
            return None

    async def _audit(self, request: Request, response: Response | None, donnees: dict | None) -> None:
        audit = AuditLog(
            user_id=self._utilisateur(request),
            cree_le=maintenant_utc(),
            action="http_request",
            ressource="http",
            ressource_id=None,
            methode_http=request.method,
            chemin=str(request.url.path),
            statut_http=(response.status_code if response else None),
            donnees=donnees,
            ip=(request.client.host if request.client else None),
            user_agent=request.headers.get("user-agent"),
        )

        try:
            async with self._session_factory() as session:
                session.add(audit)
                await session.commit()
        except Exception:
            logger.warning("audit_http_echec chemin=%s", request.url.path, exc_info=True)
