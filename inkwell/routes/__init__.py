"""
Inkwell Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:    POST /register, POST /login, GET /profile, POST /logout
    - posts.py:   POST /post, PUT /post, GET /post, GET /post/{id},
                  GET /uploads/{path}
    - health.py:  GET /health

Routes stay thin: they extract request data, call a service and return its
result. Authorization and persistence live in the services.
"""
