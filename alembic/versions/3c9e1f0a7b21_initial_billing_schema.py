"""initial billing schema: phases, projects, time_entries, phase_invoices

Revision ID: 3c9e1f0a7b21
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c9e1f0a7b21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    phases = op.create_table(
        "phases",
        sa.Column("code", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("client_name", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("billing_type", sa.String(), nullable=False, server_default="hourly"),
        sa.Column("default_rate_cents", sa.Integer(), nullable=True),
        sa.Column("phase_rates_cents", sa.JSON(), nullable=False),
        sa.Column("phase_budgets", sa.JSON(), nullable=False),
        sa.Column("invoiced_phases", sa.JSON(), nullable=False),
        sa.Column("phase_invoice_meta", sa.JSON(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("billing_type in ('hourly','fixed')", name="ck_projects_billing_type_valid"),
        sa.CheckConstraint(
            "default_rate_cents IS NULL OR default_rate_cents >= 0",
            name="ck_projects_default_rate_nonnegative",
        ),
    )
    op.create_index("ix_projects_id", "projects", ["id"])
    op.create_index("ix_projects_user_id", "projects", ["user_id"])

    op.create_table(
        "time_entries",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("phase_code", sa.String(), sa.ForeignKey("phases.code"), nullable=False),
        sa.Column("occurred_on", sa.Date(), nullable=False),
        sa.Column("minutes", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("invoiced_at", sa.Date(), nullable=True),
        sa.Column("invoice_number", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("minutes > 0", name="ck_time_entries_minutes_positive"),
    )
    op.create_index("ix_time_entries_id", "time_entries", ["id"])
    op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"])
    op.create_index("ix_time_entries_project_id", "time_entries", ["project_id"])
    op.create_index(
        "ix_time_entries_user_invoiced_occurred",
        "time_entries",
        ["user_id", "invoiced_at", "occurred_on"],
    )

    op.create_table(
        "phase_invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("phase_code", sa.String(), sa.ForeignKey("phases.code"), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("invoice_number", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount_cents > 0", name="ck_phase_invoices_amount_positive"),
    )
    op.create_index("ix_phase_invoices_id", "phase_invoices", ["id"])
    op.create_index("ix_phase_invoices_user_id", "phase_invoices", ["user_id"])
    op.create_index("ix_phase_invoices_project_id", "phase_invoices", ["project_id"])

    op.bulk_insert(
        phases,
        [
            {"code": "schetsontwerp", "name": "Schetsontwerp", "sort_order": 1},
            {"code": "voorlopig-ontwerp", "name": "Voorlopig ontwerp", "sort_order": 2},
            {"code": "vo-tekeningen", "name": "VO tekeningen", "sort_order": 3},
            {"code": "definitief-ontwerp", "name": "Definitief ontwerp", "sort_order": 4},
            {"code": "do-tekeningen", "name": "DO tekeningen", "sort_order": 5},
            {"code": "bouwvoorbereiding", "name": "Bouwvoorbereiding", "sort_order": 6},
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_phase_invoices_project_id", table_name="phase_invoices")
    op.drop_index("ix_phase_invoices_user_id", table_name="phase_invoices")
    op.drop_index("ix_phase_invoices_id", table_name="phase_invoices")
    op.drop_table("phase_invoices")

    op.drop_index("ix_time_entries_user_invoiced_occurred", table_name="time_entries")
    op.drop_index("ix_time_entries_project_id", table_name="time_entries")
    op.drop_index("ix_time_entries_user_id", table_name="time_entries")
    op.drop_index("ix_time_entries_id", table_name="time_entries")
    op.drop_table("time_entries")

    op.drop_index("ix_projects_user_id", table_name="projects")
    op.drop_index("ix_projects_id", table_name="projects")
    op.drop_table("projects")

    op.drop_table("phases")
