"""initial schema — salestracker

Revision ID: 001_initial
Create Date: 19/10/2026

Documente le schéma de la base hébergée. profiles.id est l'id de
l'utilisateur côté service d'identité (ligne créée à l'inscription).
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '001_initial'
down_revision = None

USER_ROLE = ('commercial', 'admin', 'superieur', 'consultant')
STATUT_VISITE = ('a_faire', 'en_cours', 'termine')
STATUT_ACTION = ('en_attente', 'accepte', 'refuse')
STATUT_RDV = ('planifie', 'confirme', 'termine', 'annule', 'reporte')
PRIORITE_RDV = ('basse', 'normale', 'haute', 'urgente')


def _in(column, values):
    vals_str = ", ".join([f"'{v}'" for v in values])
    return f"{column} IN ({vals_str})"


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ── profiles ──
    op.create_table("profiles",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("email", sa.String, nullable=False),
        sa.Column("nom", sa.String, nullable=True),
        sa.Column("prenom", sa.String, nullable=True),
        sa.Column("role", sa.String, nullable=False, server_default="commercial"),
        sa.Column("telephone", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(_in("role", USER_ROLE), name="ck_profiles_role"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])

    # ── visites ──
    op.create_table("visites",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("commercial_id", postgresql.UUID(as_uuid=False),
                  sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=False),
                  sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("entreprise", sa.String, nullable=False),
        sa.Column("personne_rencontree", sa.String, nullable=False),
        sa.Column("fonction_poste", sa.String, nullable=True),
        sa.Column("ville", sa.String, nullable=True),
        sa.Column("zone", sa.String, nullable=True),
        sa.Column("adresse", sa.String, nullable=True),
        sa.Column("tel_fixe", sa.String, nullable=True),
        sa.Column("mobile", sa.String, nullable=True),
        sa.Column("email", sa.String, nullable=True),
        sa.Column("date_visite", sa.Date, nullable=False),
        sa.Column("objet_visite", sa.String, nullable=False),
        sa.Column("provenance_contact", sa.String, nullable=True),
        sa.Column("interet_client", sa.String, nullable=True),
        sa.Column("actions_a_entreprendre", sa.Text, nullable=True),
        sa.Column("montant", sa.Float, nullable=True),
        sa.Column("date_prochaine_action", sa.Date, nullable=True),
        sa.Column("remarques", sa.Text, nullable=True),
        sa.Column("probabilite", sa.Integer, nullable=True),
        sa.Column("statut_visite", sa.String, nullable=False, server_default="a_faire"),
        sa.Column("statut_action", sa.String, nullable=False, server_default="en_attente"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("probabilite IS NULL OR (probabilite BETWEEN 0 AND 100)",
                           name="ck_visites_probabilite"),
        sa.CheckConstraint(_in("statut_visite", STATUT_VISITE), name="ck_visites_statut_visite"),
        sa.CheckConstraint(_in("statut_action", STATUT_ACTION), name="ck_visites_statut_action"),
    )
    op.create_index("ix_visites_commercial_id", "visites", ["commercial_id"])
    op.create_index("ix_visites_created_by", "visites", ["created_by"])
    op.create_index("ix_visites_entreprise", "visites", ["entreprise"])
    op.create_index("ix_visites_date_visite", "visites", ["date_visite"])

    # ── rendez_vous ──
    op.create_table("rendez_vous",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("commercial_id", postgresql.UUID(as_uuid=False),
                  sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("visite_id", postgresql.UUID(as_uuid=False),
                  sa.ForeignKey("visites.id", ondelete="SET NULL"), nullable=True),
        sa.Column("entreprise", sa.String, nullable=False),
        sa.Column("personne_contact", sa.String, nullable=True),
        sa.Column("telephone", sa.String, nullable=True),
        sa.Column("email", sa.String, nullable=True),
        sa.Column("ville", sa.String, nullable=True),
        sa.Column("zone", sa.String, nullable=True),
        sa.Column("adresse", sa.String, nullable=True),
        sa.Column("date_rdv", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duree_estimee", sa.Integer, nullable=False, server_default="60"),
        sa.Column("objet", sa.String, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("statut", sa.String, nullable=False, server_default="planifie"),
        sa.Column("priorite", sa.String, nullable=False, server_default="normale"),
        sa.Column("rappel_envoye", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("rappel_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("compte_rendu", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(_in("statut", STATUT_RDV), name="ck_rendez_vous_statut"),
        sa.CheckConstraint(_in("priorite", PRIORITE_RDV), name="ck_rendez_vous_priorite"),
    )
    op.create_index("ix_rendez_vous_commercial_id", "rendez_vous", ["commercial_id"])
    op.create_index("ix_rendez_vous_visite_id", "rendez_vous", ["visite_id"])
    op.create_index("ix_rendez_vous_date_rdv", "rendez_vous", ["date_rdv"])
    # Sélection du sweep : rappel_envoye = false AND rappel_date dans la fenêtre
    op.create_index(
        "ix_rendez_vous_rappel_pending", "rendez_vous", ["rappel_date"],
        postgresql_where=sa.text("rappel_envoye = false"),
    )

    # ── catalogue ──
    op.create_table("categories",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("nom", sa.String, nullable=False),
    )
    op.create_table("produits",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("reference", sa.String, nullable=True),
        sa.Column("designation", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("famille_id", sa.String, nullable=True),
        sa.Column("categorie_id", sa.String, sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("frequence", sa.String, nullable=True),
        sa.Column("prix_ht", sa.Float, nullable=True),
        sa.Column("prix_ttc", sa.Float, nullable=True),
        sa.Column("image_url", sa.String, nullable=True),
        sa.Column("actif", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_produits_reference", "produits", ["reference"])
    op.create_index("ix_produits_famille_id", "produits", ["famille_id"])
    op.create_index("ix_produits_categorie_id", "produits", ["categorie_id"])


def downgrade() -> None:
    op.drop_table("produits")
    op.drop_table("categories")
    op.drop_table("rendez_vous")
    op.drop_table("visites")
    op.drop_table("profiles")
