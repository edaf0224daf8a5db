"""
Catalog feature: the single JSON document holding every service and its sections.
"""
