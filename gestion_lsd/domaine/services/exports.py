"""Exports CSV des tableaux de statistiques (ventes du jour, livraisons).

Format « rapport » : sections titrées séparées par une ligne vide, séparateur
virgule, montants en FCFA entiers.
"""

from __future__ import annotations

import csv
import io
from decimal import Decimal

from gestion_lsd.core.nombres import arrondir
from gestion_lsd.domaine.services.commandes import StatistiquesJour
from gestion_lsd.domaine.services.livraisons import StatistiquesLivraisons


TOP_ARTICLES = 5
TOP_COMMUNES = 10


def _valeur(v: float | None) -> str:
    return "" if v is None else f"{v:g}"


def csv_statistiques_ventes(stats: StatistiquesJour) -> str:
    tampon = io.StringIO()
    w = csv.writer(tampon, lineterminator="\n")

    ticket_moyen = arrondir(Decimal(stats.total_ventes) / stats.nombre_commandes) if stats.nombre_commandes else 0

    w.writerow([f"Statistiques ventes {stats.jour.isoformat()}"])
    w.writerow([])
    w.writerow(["Chiffre d'affaires total", stats.total_ventes])
    w.writerow(["Nombre de commandes", stats.nombre_commandes])
    w.writerow(["Ticket moyen", ticket_moyen])
    if stats.tendance is not None:
        w.writerow(["Tendance", stats.tendance.direction, stats.tendance.pourcentage])
    w.writerow([])

    w.writerow(["Encaissements"])
    w.writerow(["Espèces", stats.encaissements["especes"]])
    w.writerow(["Mobile Money", stats.encaissements["momo"]])
    w.writerow([])

    w.writerow(["Répartition", "Nombre", "Montant"])
    w.writerow(["Sur place", stats.sur_place["nombre"], stats.sur_place["montant"]])
    w.writerow(["À livrer", stats.a_livrer["nombre"], stats.a_livrer["montant"]])
    w.writerow([])

    w.writerow([f"Top {TOP_ARTICLES} articles"])
    w.writerow(["Rang", "Article", "Quantité vendue"])
    for rang, article in enumerate(stats.articles[:TOP_ARTICLES], start=1):
        w.writerow([rang, article["denomination"], article["quantite"]])

    return tampon.getvalue()


def csv_statistiques_livraisons(stats: StatistiquesLivraisons, *, periode: str) -> str:
    tampon = io.StringIO()
    w = csv.writer(tampon, lineterminator="\n")

    w.writerow([f"Statistiques livraisons {periode}"])
    w.writerow([])

    w.writerow(["Délais de livraison (min)"])
    w.writerow(["Délai moyen", _valeur(stats.delais.moyen_minutes)])
    w.writerow(["Délai médian", _valeur(stats.delais.median_minutes)])
    w.writerow(["Délai minimum", _valeur(stats.delais.min_minutes)])
    w.writerow(["Délai maximum", _valeur(stats.delais.max_minutes)])
    w.writerow([])

    w.writerow(["Statistiques globales"])
    w.writerow(["Nombre total de livraisons", stats.total])
    w.writerow(["Livraisons terminées", stats.livrees])
    w.writerow(["Livraisons annulées", stats.annulees])
    w.writerow(["Livraisons en cours", stats.en_cours])
    w.writerow(["Taux de livraisons terminées", _valeur(stats.taux_livraison)])
    w.writerow([])

    w.writerow(["Top communes"])
    w.writerow(["Rang", "Commune", "Nombre de livraisons"])
    for rang, (commune, nombre) in enumerate(list(stats.par_commune.items())[:TOP_COMMUNES], start=1):
        w.writerow([rang, commune, nombre])

    return tampon.getvalue()
