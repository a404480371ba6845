"""
parts_market.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, repositories and the store boundary.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Only `db.store` is visible to the auth pipeline and order workflow; routers
# for plain CRUD use repositories directly.
