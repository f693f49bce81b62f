"""
Tax Return ORM Persistence Model (``tax_modules.tax_return.orm``).

Responsibility:
    SQLAlchemy companion for ``TaxReturn`` with ``to_dto()`` /
    ``from_dto()`` round-trip conversion.

Invariants enforced:
    - Monetary fields map to Numeric(38, 9), never float.
    - ``status`` and ``tax_type`` stored as their enum .value strings.
    - JSON columns hold JSON-safe values only: relief amounts are written
      as strings and read back as Decimal.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tax_kernel.db.base import TrackedBase, UUIDString


class TaxReturnModel(TrackedBase):
    """
    ORM model for ``TaxReturn``.

    Contract:
        Looked up by ``(user_id, business_id, tax_year, tax_type)``; the
        assembler keeps at most one non-filed return per key.
    """

    __tablename__ = "tax_returns"

    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    business_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    tax_type: Mapped[str] = mapped_column(String(50), nullable=False)
    total_income: Mapped[Decimal]
    total_deductions: Mapped[Decimal]
    total_reliefs: Mapped[Decimal]
    reliefs: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    taxable_income: Mapped[Decimal]
    tax_liability: Mapped[Decimal]
    credits_applied: Mapped[Decimal]
    tax_paid: Mapped[Decimal]
    tax_due: Mapped[Decimal]
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    supporting_documents: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    calculation_breakdown: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    documentation_complete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    missing_documents: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    validation_errors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    submission_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_tax_return_user_year", "user_id", "tax_year"),
        Index("idx_tax_return_status", "status"),
    )

    def to_dto(self):
        from tax_engines.computation.types import TaxType
        from tax_modules.tax_return.models import TaxReturn, TaxReturnStatus
        return TaxReturn(
            id=self.id,
            user_id=self.user_id,
            tax_year=self.tax_year,
            tax_type=TaxType(self.tax_type),
            business_id=self.business_id,
            total_income=self.total_income,
            total_deductions=self.total_deductions,
            total_reliefs=self.total_reliefs,
            reliefs={k: Decimal(v) for k, v in (self.reliefs or {}).items()},
            taxable_income=self.taxable_income,
            tax_liability=self.tax_liability,
            credits_applied=self.credits_applied,
            tax_paid=self.tax_paid,
            tax_due=self.tax_due,
            status=TaxReturnStatus(self.status),
            supporting_documents={k: list(v) for k, v in (self.supporting_documents or {}).items()},
            calculation_breakdown=dict(self.calculation_breakdown or {}),
            documentation_complete=self.documentation_complete,
            missing_documents=tuple(self.missing_documents or ()),
            validation_errors=tuple(self.validation_errors or ()),
            submitted=self.submitted,
            submission_date=self.submission_date,
            reference_number=self.reference_number,
            notes=self.notes,
            rejection_reason=self.rejection_reason,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "TaxReturnModel":
        return cls(
            id=dto.id,
            user_id=dto.user_id,
            business_id=dto.business_id,
            tax_year=dto.tax_year,
            tax_type=dto.tax_type.value,
            total_income=dto.total_income,
            total_deductions=dto.total_deductions,
            total_reliefs=dto.total_reliefs,
            reliefs={k: str(v) for k, v in dto.reliefs.items()},
            taxable_income=dto.taxable_income,
            tax_liability=dto.tax_liability,
            credits_applied=dto.credits_applied,
            tax_paid=dto.tax_paid,
            tax_due=dto.tax_due,
            status=dto.status.value,
            supporting_documents=dict(dto.supporting_documents),
            calculation_breakdown=dict(dto.calculation_breakdown),
            documentation_complete=dto.documentation_complete,
            missing_documents=list(dto.missing_documents),
            validation_errors=list(dto.validation_errors),
            submitted=dto.submitted,
            submission_date=dto.submission_date,
            reference_number=dto.reference_number,
            notes=dto.notes,
            rejection_reason=dto.rejection_reason,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<TaxReturnModel {self.tax_type} {self.tax_year} {self.status}>"
