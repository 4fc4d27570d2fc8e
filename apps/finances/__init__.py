"""Finances app package.

This app contains platform settings, the commission ledger and the
Stripe integration: payment intents, refunds and signed webhooks.
"""
