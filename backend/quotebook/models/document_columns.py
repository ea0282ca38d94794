"""Columns shared by the quotations and invoices tables.

Party details are denormalized snapshots taken when the document was
edited; `client_id`, `company_info_id` and `bank_info_id` are soft
references (no foreign keys) kept so an editor can restore its
selections.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column


class DocumentColumns:
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)
    project_title: Mapped[str | None] = mapped_column(String(255))
    po_number: Mapped[str | None] = mapped_column(String(100))

    # ── Issuer snapshot ──────────────────────────────────────
    from_company_name: Mapped[str | None] = mapped_column(String(255))
    from_company_registration: Mapped[str | None] = mapped_column(String(100))
    from_company_address: Mapped[str | None] = mapped_column(Text)
    from_company_email: Mapped[str | None] = mapped_column(String(255))
    from_company_phone: Mapped[str | None] = mapped_column(String(100))
    from_company_logo_url: Mapped[str | None] = mapped_column(Text)

    # ── Recipient snapshot ───────────────────────────────────
    client_name: Mapped[str | None] = mapped_column(String(255))
    client_company: Mapped[str | None] = mapped_column(String(255))
    client_address: Mapped[str | None] = mapped_column(Text)
    client_email: Mapped[str | None] = mapped_column(String(255))
    client_phone: Mapped[str | None] = mapped_column(String(100))
    client_logo_url: Mapped[str | None] = mapped_column(Text)

    # ── Lines and amounts ────────────────────────────────────
    # [{"id": "...", "description": "Desk", "unitPrice": 450, "quantity": 4,
    #   "unit": "pcs", "lineTotal": 1800}, ...]
    items: Mapped[list] = mapped_column(JSON, default=list)
    subtotal: Mapped[float] = mapped_column(Float, default=0.0)
    discount_value: Mapped[float] = mapped_column(Float, default=0.0)
    shipping: Mapped[float] = mapped_column(Float, default=0.0)
    total: Mapped[float] = mapped_column(Float, default=0.0)

    # Newline-separated entries
    terms: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    # ── Payment details ──────────────────────────────────────
    bank_name: Mapped[str | None] = mapped_column(String(255))
    bank_account_number: Mapped[str | None] = mapped_column(String(100))
    bank_account_name: Mapped[str | None] = mapped_column(String(255))

    # ── Soft references ──────────────────────────────────────
    client_id: Mapped[str | None] = mapped_column(String(36))
    company_info_id: Mapped[str | None] = mapped_column(String(36))
    bank_info_id: Mapped[str | None] = mapped_column(String(36))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, index=True
    )
