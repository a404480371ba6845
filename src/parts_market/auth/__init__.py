"""
parts_market.auth

Authentication/authorization package.

Responsibilities:
- Token validation (`jwt`), identity resolution (`resolver`), role and
  ownership checks (`gate`).
- FastAPI dependencies wiring them into a per-request pipeline (`deps`).
"""

# Package marker.
