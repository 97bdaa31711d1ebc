from __future__ import annotations

import enum


class CodeRole(str, enum.Enum):
    ADMIN = "admin"
    SUPERVISEUR = "superviseur"
    VENDEUR = "vendeur"
    CUISINIER = "cuisinier"
    LIVREUR = "livreur"


class StatutPresence(str, enum.Enum):
    """Statut déclaré par le client lors du heartbeat."""

    ONLINE = "online"
    AWAY = "away"
    OFFLINE = "offline"


class TypeNotification(str, enum.Enum):
    INFO = "info"
    SUCCES = "succes"
    AVERTISSEMENT = "avertissement"
    ERREUR = "erreur"


class FonctionPersonnel(str, enum.Enum):
    """Fonction d’un membre du personnel.

    La valeur entre dans l’identifiant métier (fonction + téléphone).
    """

    LIVREUR = "livreur"
    CUISINIER = "cuisinier"
    VENDEUSE = "vendeuse"


class FamilleEmplacement(str, enum.Enum):
    ENTREPOT = "entrepot"
    POINT_DE_VENTE = "point_de_vente"
    STAND = "stand"


class TypeOperationEmplacement(str, enum.Enum):
    OUVERTURE = "ouverture"
    FERMETURE = "fermeture"
    CHANGEMENT_VENDEUR = "changement_vendeur"
    DEPLACEMENT = "deplacement"


class TypeCommande(str, enum.Enum):
    SUR_PLACE = "sur_place"
    A_LIVRER = "a_livrer"


class StatutCommande(str, enum.Enum):
    """Statut d’une commande.

    - sur place : NON_SERVI -> SERVI
    - à livrer : NON_LIVREE -> LIVREE
    - ANNULEE pour les deux types
    """

    NON_SERVI = "non_servi"
    SERVI = "servi"
    NON_LIVREE = "non_livree"
    LIVREE = "livree"
    ANNULEE = "annulee"


class TypeArticle(str, enum.Enum):
    MENU = "menu"
    BOISSON = "boisson"


class StatutLivraison(str, enum.Enum):
    EN_ATTENTE = "en_attente"
    ASSIGNEE = "assignee"
    RECUPEREE = "recuperee"
    EN_COURS = "en_cours"
    LIVREE = "livree"
    ANNULEE = "annulee"


class PrioriteLivraison(str, enum.Enum):
    BASSE = "basse"
    NORMALE = "normale"
    HAUTE = "haute"
    URGENTE = "urgente"


class TypeCompteComptable(str, enum.Enum):
    ENTREE = "entree"
    SORTIE = "sortie"
    ENTREE_SORTIE = "entree_sortie"


class TypeOperationComptable(str, enum.Enum):
    RECETTE = "recette"
    DEPENSE = "depense"


class TypeTresorerie(str, enum.Enum):
    COMPTE_BANCAIRE = "compte_bancaire"
    MOBILE_MONEY = "mobile_money"
    MOMO_PAY = "momo_pay"
    MOOV_MONEY = "moov_money"
    CAISSE = "caisse"
