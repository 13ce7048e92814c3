from fastapi import APIRouter

from script_registry.interfaces.http.routers import scripts


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(scripts.router, prefix="/scripts", tags=["scripts"])
    return router


__all__ = [
    "create_api_router",
]
