"""
Property model.

A letting unit owned by one organization. Its status is moved between
ACTIVE and OCCUPIED by guest check-in and check-out.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, Enum, Index, Numeric, String
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propdesk.models.base.base_model import TimestampModel
from propdesk.models.base.enums import PropertyStatus, RentalType

if TYPE_CHECKING:
    from propdesk.models.booking.booking import Booking

__all__ = ["Property"]


class Property(TimestampModel):
    """
    Rentable property.

    Attributes:
        owner_id: Organization (landlord account) that owns the property
        rental_type: Long term, short term or both
        monthly_rent: Monthly rent, used when no daily rate is set
        daily_rate: Nightly rate for short stays
        calendar_urls: External iCal feeds synchronised into bookings
        sync_calendar: Whether the feeds are included in batch syncs
    """

    __tablename__ = "properties"

    owner_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Owning organization",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    rental_type: Mapped[RentalType] = mapped_column(
        Enum(RentalType),
        nullable=False,
        default=RentalType.SHORT_TERM,
    )

    monthly_rent: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    daily_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    status: Mapped[PropertyStatus] = mapped_column(
        Enum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.ACTIVE,
        index=True,
    )

    calendar_urls: Mapped[List[str]] = mapped_column(
        MutableList.as_mutable(JSON),
        nullable=False,
        default=list,
    )

    sync_calendar: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    bookings: Mapped[List["Booking"]] = relationship(
        "Booking",
        back_populates="rental_property",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint(
            "monthly_rent IS NOT NULL OR daily_rate IS NOT NULL",
            name="ck_property_has_rate",
        ),
        Index("ix_properties_owner_status", "owner_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name='{self.name}', status={self.status})>"
