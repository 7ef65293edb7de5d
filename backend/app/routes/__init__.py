# Routes package init
"""
Userbase Backend - API Routes Package
======================================

Route Inventory:
    - users.py:   GET/POST /api/users, GET/PUT/DELETE /api/users/{id}
    - health.py:  GET /api/health (service health), GET / (endpoint index)

Design Principle:
    Routes are THIN. They declare method, path, status code and response
    model, then hand the raw request values to a service. Anything that can
    fail with a 4xx is decided in the service layer.
"""
