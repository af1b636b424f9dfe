"""Per-client quotas for the signup route.

Only an in-process fixed-window limiter ships today; a shared backend would
implement ``AbstractRateLimiter`` and be passed to ``create_app``.
"""
