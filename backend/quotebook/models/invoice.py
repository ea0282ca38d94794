"""Invoice — a request for payment, optionally derived from a quotation.

Lifecycle:  draft → sent → paid | overdue,  overdue → paid

Bank details are mandatory: an invoice can never be stored with an
empty bank name, account number or account name.
"""

from datetime import date

from sqlalchemy import Date, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from quotebook.database import Base
from quotebook.models.document_columns import DocumentColumns


class Invoice(DocumentColumns, Base):
    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date)

    # SST (sales and service tax)
    sst_rate: Mapped[float | None] = mapped_column(Float)
    sst_amount: Mapped[float] = mapped_column(Float, default=0.0)

    # Soft back-reference to the source quotation
    quotation_id: Mapped[str | None] = mapped_column(String(36), index=True)

    # ── Payment tracking ─────────────────────────────────────
    paid_date: Mapped[date | None] = mapped_column(Date)
    paid_amount: Mapped[float | None] = mapped_column(Float)
    payment_reference: Mapped[str | None] = mapped_column(String(255))
