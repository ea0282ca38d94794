"""Quotation — a priced offer sent to a client.

Lifecycle:  draft → sent → accepted | rejected | expired,  expired → sent
"""

import datetime

from sqlalchemy import Date, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from quotebook.database import Base
from quotebook.models.document_columns import DocumentColumns


class Quotation(DocumentColumns, Base):
    __tablename__ = "quotations"

    quotation_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # Column is literally "date" (issue date)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[datetime.date | None] = mapped_column(Date)

    tax_rate: Mapped[float | None] = mapped_column(Float)
    tax_amount: Mapped[float] = mapped_column(Float, default=0.0)
