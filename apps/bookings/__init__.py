"""Bookings app package.

This app encapsulates stays with add-on services: the booking and
service booking models, server-side pricing with bundle discounts,
payment confirmation, cancellation requests and the append-only
event log shared with service orders.
"""
