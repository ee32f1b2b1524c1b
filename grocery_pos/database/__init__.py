# grocery_pos/database/__init__.py
