"""
Capital Credit ORM Persistence Model (``tax_modules.capital_credit.orm``).

Responsibility:
    SQLAlchemy companion for ``CapitalCredit`` with ``to_dto()`` /
    ``from_dto()`` round-trip conversion.

Invariants enforced:
    - Monetary fields map to Numeric(38, 9), never float.
    - ``remaining_amount`` is persisted per entry; allocation saves each
      mutated entry individually.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tax_kernel.db.base import TrackedBase, UUIDString


class CapitalCreditModel(TrackedBase):
    """
    ORM model for ``CapitalCredit``.

    Contract:
        One row per qualifying capital expenditure.  Rows are looked up by
        ``business_id`` and ordered by ``origin_year`` for FIFO use.
    """

    __tablename__ = "capital_credits"

    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    origin_year: Mapped[int] = mapped_column(Integer, nullable=False)
    original_amount: Mapped[Decimal]
    remaining_amount: Mapped[Decimal]
    expiry_year: Mapped[int] = mapped_column(Integer, nullable=False)
    expenditure_amount: Mapped[Decimal]
    fully_utilized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_applied_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    supplier_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    supplier_tin: Mapped[str | None] = mapped_column(String(50), nullable=True)
    expenditure_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("idx_capital_credit_business", "business_id"),
        Index("idx_capital_credit_business_year", "business_id", "origin_year"),
    )

    def to_dto(self):
        from tax_modules.capital_credit.models import CapitalCredit
        return CapitalCredit(
            id=self.id,
            business_id=self.business_id,
            origin_year=self.origin_year,
            original_amount=self.original_amount,
            remaining_amount=self.remaining_amount,
            expiry_year=self.expiry_year,
            expenditure_amount=self.expenditure_amount,
            fully_utilized=self.fully_utilized,
            last_applied_year=self.last_applied_year,
            description=self.description,
            supplier_name=self.supplier_name,
            supplier_tin=self.supplier_tin,
            expenditure_date=self.expenditure_date,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "CapitalCreditModel":
        return cls(
            id=dto.id,
            business_id=dto.business_id,
            origin_year=dto.origin_year,
            original_amount=dto.original_amount,
            remaining_amount=dto.remaining_amount,
            expiry_year=dto.expiry_year,
            expenditure_amount=dto.expenditure_amount,
            fully_utilized=dto.fully_utilized,
            last_applied_year=dto.last_applied_year,
            description=dto.description,
            supplier_name=dto.supplier_name,
            supplier_tin=dto.supplier_tin,
            expenditure_date=dto.expenditure_date,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<CapitalCreditModel {self.origin_year} {self.remaining_amount}/{self.original_amount}>"
