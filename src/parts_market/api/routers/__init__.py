"""
parts_market.api.routers

One router module per resource; mounted in `parts_market.api.app`.
"""
