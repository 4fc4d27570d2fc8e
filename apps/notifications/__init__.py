"""Notifications app package.

Stores in-app notifications and hands e-mail delivery to a Celery task
once the surrounding transaction commits.
"""
