"""
urban_node/app.py
-----------------
Thin entrypoint for running the API via:

    uvicorn urban_node.app:app

All real route wiring lives in urban_node.urban_api.
"""

from .urban_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m urban_node.app
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
