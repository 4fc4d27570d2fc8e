"""Users app package.

This module initializes the users app: the custom user model with
platform roles and approval status, session authentication, account
approval and role change requests. Use ``apps.users.models.CustomUser``
as the AUTH_USER_MODEL throughout the project.
"""
