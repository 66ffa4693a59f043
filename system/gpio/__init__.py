# system/gpio/__init__.py
