"""
PropDesk booking core.

Booking lifecycle, availability, pricing, payment reconciliation and
external calendar synchronisation for multi-tenant property management.
"""

__version__ = "0.1.0"
