# grocery_pos/models/__init__.py
