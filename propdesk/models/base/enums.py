"""
Database enums shared by models and schemas.
"""

import enum


class RentalType(str, enum.Enum):
    """How a property is let."""
    LONG_TERM = "long_term"
    SHORT_TERM = "short_term"
    BOTH = "both"


class PropertyStatus(str, enum.Enum):
    """Property operational status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    ARCHIVED = "archived"


class BookingType(str, enum.Enum):
    """Length class of a stay."""
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    COMPLETED = "completed"


class BookingSource(str, enum.Enum):
    """Channel the booking arrived through."""
    DIRECT = "direct"
    AIRBNB = "airbnb"
    BOOKING_COM = "booking_com"
    WEBSITE = "website"
    PHONE = "phone"
    REFERRAL = "referral"
    OTHER = "other"


class PaymentStatus(str, enum.Enum):
    """Payment status, also used for the derived booking payment status."""
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentMethod(str, enum.Enum):
    """Payment method."""
    CASH = "cash"
    EFT = "eft"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYSTACK = "paystack"
    PAYPAL = "paypal"
    OTHER = "other"


class PaymentType(str, enum.Enum):
    """What a payment is for."""
    RENT = "rent"
    DEPOSIT = "deposit"
    BOOKING = "booking"
    CLEANING_FEE = "cleaning_fee"
    UTILITIES = "utilities"
    LATE_FEE = "late_fee"
    DAMAGE = "damage"
    REFUND = "refund"
    OTHER = "other"


# Statuses whose date range blocks the property calendar.
BLOCKING_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
})
