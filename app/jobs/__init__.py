"""
Job opportunities, applications and the two-stage escrow that pays for them.
"""
