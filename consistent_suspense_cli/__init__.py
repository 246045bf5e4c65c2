# consistent_suspense_cli/__init__.py
