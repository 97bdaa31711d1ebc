from __future__ import annotations

from fastapi import FastAPI

from gestion_lsd.api.middleware_audit import MiddlewareAudit
from gestion_lsd.api.routeur import router
from gestion_lsd.api.sante import routeur_sante
from gestion_lsd.core.base_donnees import obtenir_fabrique_session
from gestion_lsd.core.configuration import parametres_application
from gestion_lsd.core.logging_config import configurer_logging


def creer_application() -> FastAPI:
    configurer_logging()

    application = FastAPI(title="Gestion LSD")

    # Middleware audit (append-only)
    if parametres_application.audit_http_actif:
        application.add_middleware(MiddlewareAudit, session_factory=lambda: obtenir_fabrique_session()())

    # Routes
    application.include_router(router)

    # Santé
    application.include_router(routeur_sante)

    return application


app = creer_application()
