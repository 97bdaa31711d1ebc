from __future__ import annotations

from fastapi import APIRouter

# ===== Endpoints internes =====
from gestion_lsd.api.endpoints.adresses import routeur_adresses_interne
from gestion_lsd.api.endpoints.catalogue import routeur_catalogue_interne
from gestion_lsd.api.endpoints.commandes import routeur_commandes_interne
from gestion_lsd.api.endpoints.comptabilite import routeur_comptabilite_interne
from gestion_lsd.api.endpoints.emplacements import routeur_emplacements_interne
from gestion_lsd.api.endpoints.livraisons import routeur_livraisons_interne
from gestion_lsd.api.endpoints.notifications import routeur_notifications, routeur_notifications_interne
from gestion_lsd.api.endpoints.personnel import routeur_personnel_interne

# ===== Endpoints authentifiés (JWT) =====
from gestion_lsd.api.endpoints.auth import routeur_auth
from gestion_lsd.api.endpoints.presence import routeur_presence
from gestion_lsd.api.endpoints.utilisateurs import routeur_utilisateurs


# ==============================
# ROUTEUR PRINCIPAL
# ==============================
router = APIRouter()

# Auth
router.include_router(routeur_auth)

# Socle utilisateurs (API interne, admin)
router.include_router(routeur_utilisateurs)

# Présence et notifications de l'utilisateur connecté
router.include_router(routeur_presence)
router.include_router(routeur_notifications)


# ==============================
# API INTERNE
# ==============================
routeur_interne = APIRouter(prefix="/api/interne")

routeur_interne.include_router(routeur_adresses_interne)
routeur_interne.include_router(routeur_emplacements_interne)
routeur_interne.include_router(routeur_catalogue_interne)
routeur_interne.include_router(routeur_personnel_interne)
routeur_interne.include_router(routeur_commandes_interne)
routeur_interne.include_router(routeur_livraisons_interne)
routeur_interne.include_router(routeur_comptabilite_interne)
routeur_interne.include_router(routeur_notifications_interne)

router.include_router(routeur_interne)
