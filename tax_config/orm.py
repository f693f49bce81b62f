"""
Configuration ORM Persistence Model (``tax_config.orm``).

Responsibility:
    SQLAlchemy companion for the ``ConfigEntry`` DTO with ``to_dto()`` /
    ``from_dto()`` conversion.

Invariants enforced:
    - ``(tax_year, config_key)`` is unique.
    - ``value_type`` stored as the ConfigValueType .value string.
"""

from uuid import UUID

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tax_kernel.db.base import TrackedBase


class TaxConfigurationModel(TrackedBase):
    """ORM model for ``ConfigEntry``."""

    __tablename__ = "tax_configurations"

    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    config_key: Mapped[str] = mapped_column(String(100), nullable=False)
    config_value: Mapped[str] = mapped_column(Text, nullable=False)
    value_type: Mapped[str] = mapped_column(String(20), nullable=False, default="number")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("tax_year", "config_key", name="uq_tax_config_year_key"),
        Index("idx_tax_config_year", "tax_year"),
    )

    def to_dto(self):
        from tax_config.store import ConfigEntry, ConfigValueType
        return ConfigEntry(
            id=self.id,
            tax_year=self.tax_year,
            config_key=self.config_key,
            config_value=self.config_value,
            value_type=ConfigValueType(self.value_type),
            description=self.description,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "TaxConfigurationModel":
        return cls(
            id=dto.id,
            tax_year=dto.tax_year,
            config_key=dto.config_key,
            config_value=dto.config_value,
            value_type=dto.value_type.value,
            description=dto.description,
            is_active=dto.is_active,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<TaxConfigurationModel {self.tax_year}:{self.config_key}>"
