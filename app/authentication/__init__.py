"""
Authentication application.

Key components:
    - User model: Custom email-based user authentication
    - Profile model: Display name, membership plan and Stripe customer id

Authentication itself is simplejwt JWTAuthentication plus Django sessions,
configured in REST_FRAMEWORK settings.

Usage:
    from authentication.models import User, Profile
"""
