"""provreg — a provenance registry for creators, their series and their assets.

Creators claim a unique display name, receive a per-creator catalog from the
factory, and publish series and tagged assets into it.
"""

__version__ = "0.1.0"
