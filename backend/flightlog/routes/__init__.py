# Routes package init
"""
FlightLog Backend: API Routes Package
======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - places.py:   GET /api/places/{external_id}  (cached place details)
    - airports.py: GET /airports                  (static airport lookup)
    - health.py:   GET /health                    (service health check)

Routes stay thin: they extract request data, call a service and set
response headers. Business logic lives in services.
"""
