"""Users app package.

Defines the email-login user model used as AUTH_USER_MODEL
(``apps.users.models.User``) and the register/login/logout endpoints.
The ``is_staff`` flag marks administrators.
"""
