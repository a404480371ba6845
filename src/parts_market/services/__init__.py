"""
parts_market.services

Service layer package.

Responsibilities:
- Business workflows that own transaction boundaries (order placement).
"""

# Package marker.
