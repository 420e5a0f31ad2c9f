"""Backstage Backend Application.

Authentication and credential recovery core of a media/social platform
for artists.

Modules:
    - core: Configuration, database, logging, metrics, middleware
    - modules.auth: Signup, signin, bearer tokens, OTP password recovery
    - modules.users: Password recovery endpoints and user profiles
    - modules.notification: OTP delivery channels
"""

__version__ = "0.1.0"
