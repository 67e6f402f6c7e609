"""Declarative base with every model registered on its metadata."""
from propdesk.models.base.base_model import Base
from propdesk.models.booking.booking import Booking  # noqa: F401
from propdesk.models.payment.payment import Payment  # noqa: F401
from propdesk.models.property.property import Property  # noqa: F401

__all__ = ["Base"]
