"""
Storefront Backend — Services Layer
=====================================

Service Inventory:
    - upload_service:   reads the optional image part with a size ceiling
    - image_service:    Pillow derivatives + Cloudinary paired upload/discard
    - validation:       declarative field rule tables
    - pagination:       page/offset math and sort resolution
    - product_service:  product CRUD and listing
    - category_service: category listing
    - auth_service:     login and current-user lookup

Services receive the db session (and the image pipeline, where needed)
per call; none of them hold connections of their own.
"""
