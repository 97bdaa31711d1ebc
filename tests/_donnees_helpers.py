"""Jeu de données minimal STRICTEMENT côté tests (point de vente, articles, adresse)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from gestion_lsd.domaine.enums.types import FamilleEmplacement, TypeArticle, TypeCommande
from gestion_lsd.domaine.modeles.adresses import Adresse
from gestion_lsd.domaine.modeles.catalogue import Boisson, Menu
from gestion_lsd.domaine.modeles.commandes import Commande
from gestion_lsd.domaine.modeles.emplacements import Emplacement
from gestion_lsd.domaine.services.adresses import ServiceAdresses
from gestion_lsd.domaine.services.catalogue import ServiceCatalogue
from gestion_lsd.domaine.services.commandes import LigneDemandee, PaiementDemande, ServiceCommandes
from gestion_lsd.domaine.services.emplacements import Position, ServiceEmplacements


@dataclass
class Socle:
    point_de_vente: Emplacement
    menu: Menu
    boisson: Boisson
    adresse: Adresse


async def creer_socle(session: AsyncSession) -> Socle:
    catalogue = ServiceCatalogue(session)
    return Socle(
        point_de_vente=await ServiceEmplacements(session).creer(
            denomination="PDV Ganhi",
            famille=FamilleEmplacement.POINT_DE_VENTE,
            position=Position(departement="Littoral", commune="Cotonou"),
        ),
        menu=await catalogue.creer_menu(denomination="Riz au poulet", prix=2500),
        boisson=await catalogue.creer_boisson(denomination="Bissap", prix=1000),
        adresse=await ServiceAdresses(session).creer(
            departement="Littoral",
            commune="Cotonou",
            arrondissement="12e",
            quartier="Fidjrossè",
        ),
    )


async def creer_commande_a_livrer(
    session: AsyncSession,
    socle: Socle,
    *,
    sexe: str = "F",
    maintenant: datetime | None = None,
) -> Commande:
    return await ServiceCommandes(session).creer(
        type_commande=TypeCommande.A_LIVRER,
        sexe=sexe,
        client_nom="Client livraison",
        client_telephone="97000000",
        point_de_vente_id=socle.point_de_vente.id,
        lignes=[LigneDemandee(type_article=TypeArticle.MENU, article_id=socle.menu.id, quantite=1)],
        paiement=PaiementDemande(montant_momo=3000, frais_livraison=500),
        adresse_livraison_id=socle.adresse.id,
        personne_a_livrer="Destinataire",
        telephone_a_livrer="96000000",
        maintenant=maintenant,
    )
