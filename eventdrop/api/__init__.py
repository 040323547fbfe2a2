"""
HTTP layer: FastAPI routes, dependencies and HTML pages.
"""
