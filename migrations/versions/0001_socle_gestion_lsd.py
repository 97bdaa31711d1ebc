"""socle gestion lsd

Revision ID: 0001_socle
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_socle"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _uuid(nom: str, cible: str | None = None, *, nullable: bool = False) -> sa.Column:
    if cible is None:
        return sa.Column(nom, postgresql.UUID(as_uuid=True), nullable=nullable)
    return sa.Column(nom, postgresql.UUID(as_uuid=True), sa.ForeignKey(cible), nullable=nullable)


def _enum(nom: str) -> sa.Column:
    # enums stockés en VARCHAR (native_enum=False)
    return sa.Column(nom, sa.String(length=50), nullable=False)


def _actif() -> sa.Column:
    return sa.Column("actif", sa.Boolean(), nullable=False, server_default=sa.text("true"))


def _horodatage() -> list[sa.Column]:
    return [
        sa.Column(
            "cree_le",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("timezone('utc', now())"),
        ),
        sa.Column(
            "mis_a_jour_le",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("timezone('utc', now())"),
        ),
    ]


def upgrade() -> None:
    # ===== Auth =====
    op.create_table(
        "role",
        _id(),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("libelle", sa.String(length=120), nullable=False),
        _actif(),
        *_horodatage(),
    )
    op.create_index("ix_role_code", "role", ["code"], unique=True)

    op.create_table(
        "user",
        _id(),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("nom_affiche", sa.String(length=200), nullable=False),
        sa.Column("telephone", sa.String(length=20), nullable=True),
        sa.Column("mot_de_passe_hash", sa.String(length=255), nullable=False),
        _actif(),
        sa.Column("dernier_login_le", sa.DateTime(timezone=True), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "user_role",
        _id(),
        _uuid("user_id", "user.id"),
        _uuid("role_id", "role.id"),
        *_horodatage(),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_role_user_id_role_id"),
    )
    op.create_index("ix_user_role_user_id", "user_role", ["user_id"])
    op.create_index("ix_user_role_role_id", "user_role", ["role_id"])

    op.create_table(
        "audit_log",
        _id(),
        _uuid("user_id", "user.id", nullable=True),
        sa.Column(
            "cree_le",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("timezone('utc', now())"),
        ),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("ressource", sa.String(length=120), nullable=False),
        sa.Column("ressource_id", sa.String(length=120), nullable=True),
        sa.Column("methode_http", sa.String(length=20), nullable=True),
        sa.Column("chemin", sa.String(length=300), nullable=True),
        sa.Column("statut_http", sa.Integer(), nullable=True),
        sa.Column("donnees", sa.JSON(), nullable=True),
        sa.Column("ip", sa.String(length=60), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
    )
    op.create_index("ix_audit_log_user_id", "audit_log", ["user_id"])
    op.create_index("ix_audit_log_action_cree_le", "audit_log", ["action", "cree_le"])

    # ===== Présence / notifications =====
    op.create_table(
        "presence",
        _id(),
        _uuid("user_id", "user.id"),
        _enum("statut"),
        sa.Column("vu_le", sa.DateTime(timezone=True), nullable=False),
        sa.Column("nom_utilisateur", sa.String(length=200), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=True),
        sa.UniqueConstraint("user_id", name="uq_presence_user_id"),
    )
    op.create_index("ix_presence_statut_vu_le", "presence", ["statut", "vu_le"])

    op.create_table(
        "notification",
        _id(),
        _uuid("user_id", "user.id"),
        sa.Column("message", sa.Text(), nullable=False),
        _enum("type_notification"),
        sa.Column("lue", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_horodatage(),
    )
    op.create_index("ix_notification_user_cree_le", "notification", ["user_id", "cree_le"])

    # ===== Personnel =====
    op.create_table(
        "membre_personnel",
        _id(),
        sa.Column("identifiant", sa.String(length=80), nullable=False),
        _enum("fonction"),
        sa.Column("nom", sa.String(length=120), nullable=False),
        sa.Column("prenoms", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("telephone", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("zones", sa.JSON(), nullable=False),
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("identifiant", name="uq_membre_personnel_identifiant"),
    )
    op.create_index("ix_membre_personnel_fonction_actif", "membre_personnel", ["fonction", "actif"])

    # ===== Adresses =====
    op.create_table(
        "adresse",
        _id(),
        sa.Column("nom", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("departement", sa.String(length=50), nullable=False),
        sa.Column("commune", sa.String(length=120), nullable=False),
        sa.Column("arrondissement", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("quartier", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("latitude", sa.Float(), nullable=False, server_default="0"),
        sa.Column("longitude", sa.Float(), nullable=False, server_default="0"),
        _actif(),
        _uuid("cree_par", "user.id", nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_adresse_departement_commune", "adresse", ["departement", "commune"])

    op.create_table(
        "tarif_livraison",
        _id(),
        _uuid("adresse_id", "adresse.id"),
        _uuid("livreur_id", "membre_personnel.id"),
        sa.Column("livreur_nom", sa.String(length=250), nullable=False),
        sa.Column("tarif", sa.Integer(), nullable=False),
        *_horodatage(),
        sa.UniqueConstraint("adresse_id", "livreur_id", name="uq_tarif_livraison_adresse_livreur"),
    )
    op.create_index("ix_tarif_livraison_adresse_id", "tarif_livraison", ["adresse_id"])

    # ===== Emplacements =====
    op.create_table(
        "emplacement",
        _id(),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        _enum("famille"),
        sa.Column("sous_type", sa.String(length=120), nullable=True),
        sa.Column("theme", sa.String(length=200), nullable=True),
        sa.Column("theme_description", sa.Text(), nullable=True),
        sa.Column("departement", sa.String(length=50), nullable=True),
        sa.Column("commune", sa.String(length=120), nullable=True),
        sa.Column("arrondissement", sa.String(length=120), nullable=True),
        sa.Column("quartier", sa.String(length=120), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False, server_default="0"),
        sa.Column("longitude", sa.Float(), nullable=False, server_default="0"),
        _uuid("vendeur_id", "membre_personnel.id", nullable=True),
        sa.Column("vendeur_nom", sa.String(length=250), nullable=True),
        sa.Column("horaires", sa.JSON(), nullable=False),
        sa.Column("est_ouvert", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("denomination", name="uq_emplacement_denomination"),
    )
    op.create_index("ix_emplacement_famille_actif", "emplacement", ["famille", "actif"])

    op.create_table(
        "operation_emplacement",
        _id(),
        _uuid("emplacement_id", "emplacement.id"),
        _enum("type_operation"),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("effectuee_le", sa.DateTime(timezone=True), nullable=False),
        _uuid("auteur_id", "user.id", nullable=True),
    )
    op.create_index(
        "ix_operation_emplacement_emplacement",
        "operation_emplacement",
        ["emplacement_id", "effectuee_le"],
    )

    # ===== Catalogue =====
    op.create_table(
        "ingredient",
        _id(),
        sa.Column("nom", sa.String(length=200), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False, server_default="0"),
        sa.Column("unite_nom", sa.String(length=50), nullable=False, server_default="gramme"),
        sa.Column("unite_symbole", sa.String(length=10), nullable=False, server_default="g"),
        sa.Column("cal_100", sa.Float(), nullable=True),
        sa.Column("kj_100", sa.Float(), nullable=True),
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("nom", name="uq_ingredient_nom"),
    )

    op.create_table(
        "menu",
        _id(),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("prix", sa.Integer(), nullable=False, server_default="2000"),
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("denomination", name="uq_menu_denomination"),
    )

    op.create_table(
        "menu_ingredient",
        _id(),
        _uuid("menu_id", "menu.id"),
        _uuid("ingredient_id", "ingredient.id"),
        *_horodatage(),
        sa.UniqueConstraint("menu_id", "ingredient_id", name="uq_menu_ingredient_menu_ingredient"),
    )
    op.create_index("ix_menu_ingredient_menu_id", "menu_ingredient", ["menu_id"])

    op.create_table(
        "boisson",
        _id(),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("prix", sa.Integer(), nullable=False, server_default="1000"),
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("denomination", name="uq_boisson_denomination"),
    )

    # ===== Commandes =====
    op.create_table(
        "commande",
        _id(),
        sa.Column("code", sa.String(length=40), nullable=False),
        _enum("type_commande"),
        _enum("statut"),
        sa.Column("client_nom", sa.String(length=200), nullable=False),
        sa.Column("client_telephone", sa.String(length=14), nullable=False),
        _uuid("point_de_vente_id", "emplacement.id"),
        sa.Column("point_de_vente_nom", sa.String(length=200), nullable=False),
        _uuid("vendeur_id", "user.id", nullable=True),
        sa.Column("vendeur_nom", sa.String(length=200), nullable=True),
        _uuid("adresse_livraison_id", "adresse.id", nullable=True),
        sa.Column("personne_a_livrer", sa.String(length=200), nullable=True),
        sa.Column("telephone_a_livrer", sa.String(length=14), nullable=True),
        sa.Column("livraison_prevue_le", sa.DateTime(timezone=True), nullable=True),
        sa.Column("indication_adresse", sa.Text(), nullable=True),
        *[
            sa.Column(nom, sa.Integer(), nullable=False, server_default="0")
            for nom in (
                "sous_total",
                "frais_livraison",
                "reduction",
                "total",
                "montant_especes",
                "montant_momo",
                "montant_recu",
                "monnaie_rendue",
                "dette",
            )
        ],
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("code", name="uq_commande_code"),
    )
    op.create_index("ix_commande_cree_le", "commande", ["cree_le"])
    op.create_index("ix_commande_point_de_vente", "commande", ["point_de_vente_id"])

    op.create_table(
        "ligne_commande",
        _id(),
        _uuid("commande_id", "commande.id"),
        _enum("type_article"),
        _uuid("article_id"),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("quantite", sa.Integer(), nullable=False),
        sa.Column("prix_unitaire", sa.Integer(), nullable=False),
        *_horodatage(),
    )
    op.create_index("ix_ligne_commande_commande", "ligne_commande", ["commande_id"])

    op.create_table(
        "compteur_commande",
        _id(),
        sa.Column("annee", sa.Integer(), nullable=False),
        sa.Column("mois", sa.Integer(), nullable=False),
        sa.Column("sexe", sa.String(length=1), nullable=False),
        sa.Column("dernier_numero", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("annee", "mois", "sexe", name="uq_compteur_commande_annee_mois_sexe"),
    )

    # ===== Livraisons =====
    op.create_table(
        "livraison",
        _id(),
        sa.Column("commande_code", sa.String(length=40), sa.ForeignKey("commande.code"), nullable=False),
        _enum("statut"),
        _enum("priorite"),
        _uuid("adresse_id", "adresse.id", nullable=True),
        sa.Column("client_nom", sa.String(length=200), nullable=True),
        sa.Column("client_telephone", sa.String(length=14), nullable=True),
        _uuid("livreur_id", "membre_personnel.id", nullable=True),
        sa.Column("livreur_nom", sa.String(length=250), nullable=True),
        sa.Column("colis_recupere", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("motif_annulation", sa.Text(), nullable=True),
        sa.Column("assignee_le", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recuperee_le", sa.DateTime(timezone=True), nullable=True),
        sa.Column("demarree_le", sa.DateTime(timezone=True), nullable=True),
        sa.Column("livree_le", sa.DateTime(timezone=True), nullable=True),
        sa.Column("annulee_le", sa.DateTime(timezone=True), nullable=True),
        _uuid("cree_par", "user.id", nullable=True),
        *_horodatage(),
        sa.UniqueConstraint("commande_code", name="uq_livraison_commande_code"),
    )
    op.create_index("ix_livraison_statut", "livraison", ["statut"])
    op.create_index("ix_livraison_livreur", "livraison", ["livreur_id"])

    # ===== Comptabilité =====
    op.create_table(
        "compte_comptable",
        _id(),
        sa.Column("code_ohada", sa.String(length=20), nullable=False),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _enum("type_compte"),
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("code_ohada", name="uq_compte_comptable_code_ohada"),
    )

    op.create_table(
        "tresorerie",
        _id(),
        sa.Column("denomination", sa.String(length=200), nullable=False),
        sa.Column("numero", sa.String(length=60), nullable=True),
        _enum("type_tresorerie"),
        sa.Column("solde", sa.Integer(), nullable=False, server_default="0"),
        _actif(),
        *_horodatage(),
        sa.UniqueConstraint("denomination", name="uq_tresorerie_denomination"),
    )

    op.create_table(
        "semaine_comptable",
        _id(),
        sa.Column("annee", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=3), nullable=False),
        sa.Column("numero", sa.Integer(), nullable=False),
        sa.Column("date_debut", sa.Date(), nullable=False),
        sa.Column("date_fin", sa.Date(), nullable=False),
        sa.Column("cloture", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("cloturee_le", sa.DateTime(timezone=True), nullable=True),
        *_horodatage(),
        sa.UniqueConstraint("annee", "code", name="uq_semaine_comptable_annee_code"),
    )

    op.create_table(
        "operation_comptable",
        _id(),
        sa.Column("date_operation", sa.Date(), nullable=False),
        _enum("type_operation"),
        sa.Column("montant", sa.Integer(), nullable=False),
        sa.Column("observation", sa.Text(), nullable=True),
        _uuid("compte_id", "compte_comptable.id"),
        _uuid("tresorerie_id", "tresorerie.id"),
        _uuid("semaine_id", "semaine_comptable.id"),
        _actif(),
        _uuid("cree_par", "user.id", nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_operation_comptable_semaine", "operation_comptable", ["semaine_id"])
    op.create_index("ix_operation_comptable_date", "operation_comptable", ["date_operation"])


def downgrade() -> None:
    for table in (
        "operation_comptable",
        "semaine_comptable",
        "tresorerie",
        "compte_comptable",
        "livraison",
        "compteur_commande",
        "ligne_commande",
        "commande",
        "boisson",
        "menu_ingredient",
        "menu",
        "ingredient",
        "operation_emplacement",
        "emplacement",
        "tarif_livraison",
        "adresse",
        "membre_personnel",
        "notification",
        "presence",
        "audit_log",
        "user_role",
        "user",
        "role",
    ):
        op.drop_table(table)
