"""Initial schema: reference entities, quotations and invoices.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-17

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def _document_columns() -> list[sa.Column]:
    """Columns shared by quotations and invoices."""
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("project_title", sa.String(255)),
        sa.Column("po_number", sa.String(100)),
        # Issuer snapshot
        sa.Column("from_company_name", sa.String(255)),
        sa.Column("from_company_registration", sa.String(100)),
        sa.Column("from_company_address", sa.Text()),
        sa.Column("from_company_email", sa.String(255)),
        sa.Column("from_company_phone", sa.String(100)),
        sa.Column("from_company_logo_url", sa.Text()),
        # Recipient snapshot
        sa.Column("client_name", sa.String(255)),
        sa.Column("client_company", sa.String(255)),
        sa.Column("client_address", sa.Text()),
        sa.Column("client_email", sa.String(255)),
        sa.Column("client_phone", sa.String(100)),
        sa.Column("client_logo_url", sa.Text()),
        # Lines and amounts
        sa.Column("items", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("subtotal", sa.Float(), nullable=False, server_default="0"),
        sa.Column("discount_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("shipping", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total", sa.Float(), nullable=False, server_default="0"),
        sa.Column("terms", sa.Text()),
        sa.Column("notes", sa.Text()),
        # Payment details
        sa.Column("bank_name", sa.String(255)),
        sa.Column("bank_account_number", sa.String(100)),
        sa.Column("bank_account_name", sa.String(255)),
        # Soft references (no foreign keys)
        sa.Column("client_id", sa.String(36)),
        sa.Column("company_info_id", sa.String(36)),
        sa.Column("bank_info_id", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── Reference entities ───────────────────────────────────

    op.create_table(
        "company_info",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("registration_number", sa.String(100)),
        sa.Column("address", sa.Text(), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("phone", sa.String(100), nullable=False, server_default=""),
        sa.Column("logo_url", sa.Text()),
        sa.Column("is_default", sa.Boolean(), server_default="false"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_company_info_user_id", "company_info", ["user_id"])

    op.create_table(
        "clients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(100)),
        sa.Column("address", sa.Text()),
        sa.Column("is_favorite", sa.Boolean(), server_default="false"),
        sa.Column("last_used_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_clients_user_id", "clients", ["user_id"])

    op.create_table(
        "bank_info",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("bank_name", sa.String(255), nullable=False),
        sa.Column("account_number", sa.String(100), nullable=False),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column("is_default", sa.Boolean(), server_default="false"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_bank_info_user_id", "bank_info", ["user_id"])

    # ── Documents ────────────────────────────────────────────

    op.create_table(
        "quotations",
        *_document_columns(),
        sa.Column("quotation_number", sa.String(50), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("valid_until", sa.Date()),
        sa.Column("tax_rate", sa.Float()),
        sa.Column("tax_amount", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_index("ix_quotations_user_id", "quotations", ["user_id"])
    op.create_index("ix_quotations_status", "quotations", ["status"])
    op.create_index("ix_quotations_updated_at", "quotations", ["updated_at"])
    op.create_index("ix_quotations_quotation_number", "quotations", ["quotation_number"])

    op.create_table(
        "invoices",
        *_document_columns(),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date()),
        sa.Column("sst_rate", sa.Float()),
        sa.Column("sst_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("quotation_id", sa.String(36)),
        sa.Column("paid_date", sa.Date()),
        sa.Column("paid_amount", sa.Float()),
        sa.Column("payment_reference", sa.String(255)),
    )
    op.create_index("ix_invoices_user_id", "invoices", ["user_id"])
    op.create_index("ix_invoices_status", "invoices", ["status"])
    op.create_index("ix_invoices_updated_at", "invoices", ["updated_at"])
    op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"])
    op.create_index("ix_invoices_quotation_id", "invoices", ["quotation_id"])


def downgrade() -> None:
    op.drop_table("invoices")
    op.drop_table("quotations")
    op.drop_table("bank_info")
    op.drop_table("clients")
    op.drop_table("company_info")
