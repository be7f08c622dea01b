"""
Storefront Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:        POST /api/login, GET /api/me
    - products.py:    product CRUD under /api/product, listing at /api/products
    - categories.py:  GET /api/categories
    - health.py:      GET /health

Routes are thin: they read the request, call a service, and wrap the result
in the response envelope. Errors propagate to the handlers in main.py.
"""
