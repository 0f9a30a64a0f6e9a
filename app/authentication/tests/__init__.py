"""
Tests for authentication app: User, UserManager and the auto-created Profile.
"""
