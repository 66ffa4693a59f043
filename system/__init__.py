# system/__init__.py
