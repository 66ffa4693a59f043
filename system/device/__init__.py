# system/device/__init__.py
