"""
Computation ORM Persistence Models (``tax_modules.computation.orm``).

Responsibility:
    SQLAlchemy companions for ``IncomeRecord``, ``BusinessProfile`` and
    ``TaxCalculationRecord`` with ``to_dto()`` / ``from_dto()`` conversion.

Invariants enforced:
    - Monetary fields map to Numeric(38, 9), never float.
    - Enum fields stored as String(50) containing the enum .value string.
    - Breakdowns stored as JSON with Decimals already stringified.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tax_kernel.db.base import TrackedBase, UUIDString


class IncomeRecordModel(TrackedBase):
    """ORM model for ``IncomeRecord``."""

    __tablename__ = "income_records"

    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    business_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal]
    income_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_income_record_user_year", "user_id", "tax_year"),
    )

    def to_dto(self):
        from tax_modules.computation.models import IncomeRecord, IncomeSource
        return IncomeRecord(
            id=self.id,
            user_id=self.user_id,
            tax_year=self.tax_year,
            source=IncomeSource(self.source),
            amount=self.amount,
            business_id=self.business_id,
            income_date=self.income_date,
            payer=self.payer,
            description=self.description,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "IncomeRecordModel":
        return cls(
            id=dto.id,
            user_id=dto.user_id,
            business_id=dto.business_id,
            tax_year=dto.tax_year,
            source=dto.source.value,
            amount=dto.amount,
            income_date=dto.income_date,
            payer=dto.payer,
            description=dto.description,
            created_by_id=created_by_id,
        )


class BusinessProfileModel(TrackedBase):
    """ORM model for ``BusinessProfile``."""

    __tablename__ = "business_profiles"

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tin: Mapped[str | None] = mapped_column(String(50), nullable=True)
    business_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tax_exempt_status: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_agricultural_business: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    agricultural_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    asset_value: Mapped[Decimal]

    __table_args__ = (
        Index("idx_business_profile_owner", "owner_id"),
    )

    def to_dto(self):
        from tax_modules.computation.models import BusinessProfile
        return BusinessProfile(
            id=self.id,
            owner_id=self.owner_id,
            name=self.name,
            tin=self.tin,
            business_type=self.business_type,
            tax_exempt_status=self.tax_exempt_status,
            is_agricultural_business=self.is_agricultural_business,
            agricultural_start_date=self.agricultural_start_date,
            asset_value=self.asset_value,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "BusinessProfileModel":
        return cls(
            id=dto.id,
            owner_id=dto.owner_id,
            name=dto.name,
            tin=dto.tin,
            business_type=dto.business_type,
            tax_exempt_status=dto.tax_exempt_status,
            is_agricultural_business=dto.is_agricultural_business,
            agricultural_start_date=dto.agricultural_start_date,
            asset_value=dto.asset_value,
            created_by_id=created_by_id,
        )


class TaxCalculationModel(TrackedBase):
    """ORM model for ``TaxCalculationRecord``."""

    __tablename__ = "tax_calculations"

    tax_type: Mapped[str] = mapped_column(String(50), nullable=False)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    gross_income: Mapped[Decimal]
    deductions: Mapped[Decimal]
    total_reliefs: Mapped[Decimal]
    taxable_income: Mapped[Decimal]
    tax_liability: Mapped[Decimal]
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    business_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    breakdown: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_tax_calculation_user", "user_id"),
        Index("idx_tax_calculation_business", "business_id"),
    )

    def to_dto(self):
        from tax_engines.computation.types import TaxType
        from tax_modules.computation.models import TaxCalculationRecord
        return TaxCalculationRecord(
            id=self.id,
            tax_type=TaxType(self.tax_type),
            tax_year=self.tax_year,
            gross_income=self.gross_income,
            deductions=self.deductions,
            total_reliefs=self.total_reliefs,
            taxable_income=self.taxable_income,
            tax_liability=self.tax_liability,
            calculated_at=self.calculated_at,
            user_id=self.user_id,
            business_id=self.business_id,
            breakdown=dict(self.breakdown or {}),
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "TaxCalculationModel":
        return cls(
            id=dto.id,
            tax_type=dto.tax_type.value,
            tax_year=dto.tax_year,
            gross_income=dto.gross_income,
            deductions=dto.deductions,
            total_reliefs=dto.total_reliefs,
            taxable_income=dto.taxable_income,
            tax_liability=dto.tax_liability,
            calculated_at=dto.calculated_at,
            user_id=dto.user_id,
            business_id=dto.business_id,
            breakdown=dto.breakdown,
            notes=dto.notes,
            created_by_id=created_by_id,
        )
