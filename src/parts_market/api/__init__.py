"""
parts_market.api

API package for the parts marketplace.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, response models and error rendering.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer stays thin: request parsing + auth dependencies + delegation.
