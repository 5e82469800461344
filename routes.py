# routes.py
from fastapi import FastAPI
from controller.deck_controller import deck_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(deck_router)
