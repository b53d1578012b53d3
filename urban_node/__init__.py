"""
UrbanFHE Plan node package initializer

Keep this module lightweight. Do not import the API or storage drivers here,
so the runtime can be used without FastAPI/httpx being imported.
"""

__all__ = []
