"""Modèles SQLAlchemy.

Aucune logique métier ici : uniquement la structure des tables.
"""

from gestion_lsd.domaine.modeles.base import BaseModele, ModeleHorodate
from gestion_lsd.domaine.modeles.auth import Role, User, UserRole
from gestion_lsd.domaine.modeles.audit import AuditLog
from gestion_lsd.domaine.modeles.presence import Notification, Presence
from gestion_lsd.domaine.modeles.personnel import MembrePersonnel
from gestion_lsd.domaine.modeles.adresses import Adresse, TarifLivraison
from gestion_lsd.domaine.modeles.emplacements import Emplacement, OperationEmplacement
from gestion_lsd.domaine.modeles.catalogue import (
    Boisson,
    ElementMenuCompose,
    Ingredient,
    Menu,
    MenuCompose,
    MenuIngredient,
    Supplement,
)
from gestion_lsd.domaine.modeles.commandes import Commande, CompteurCommande, LigneCommande
from gestion_lsd.domaine.modeles.livraisons import Livraison
from gestion_lsd.domaine.modeles.comptabilite import (
    CompteComptable,
    OperationComptable,
    SemaineComptable,
    Tresorerie,
)

__all__ = [
    "BaseModele",
    "ModeleHorodate",
    # Auth
    "User",
    "Role",
    "UserRole",
    "AuditLog",
    # Présence
    "Presence",
    "Notification",
    # Personnel
    "MembrePersonnel",
    # Adresses
    "Adresse",
    "TarifLivraison",
    # Emplacements
    "Emplacement",
    "OperationEmplacement",
    # Catalogue
    "Ingredient",
    "Menu",
    "MenuIngredient",
    "Boisson",
    "MenuCompose",
    "ElementMenuCompose",
    "Supplement",
    # Commandes & livraisons
    "Commande",
    "LigneCommande",
    "CompteurCommande",
    "Livraison",
    # Comptabilité
    "CompteComptable",
    "Tresorerie",
    "SemaineComptable",
    "OperationComptable",
]
