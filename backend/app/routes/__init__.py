# Routes package init
"""
Places Backend: API Routes Package
====================================

Route Inventory:
    - places.py:  GET    /api/places/{place_id}
                  GET    /api/places/user/{user_id}
                  POST   /api/places
                  PATCH  /api/places/{place_id}
                  DELETE /api/places/{place_id}
    - users.py:   GET    /api/users
                  POST   /api/users/signup
    - health.py:  GET    /health

Routes stay thin: parse the request, call a service, wrap the result.
"""
