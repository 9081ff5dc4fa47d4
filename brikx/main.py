from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from brikx.core.logging import configure_logging
from brikx.models import meal_plan, phase, phase_invoice, project, recipe, shopping_list, time_entry  # noqa: F401
from brikx.routers.auth import router as auth_router
from brikx.routers.billing import router as billing_router
from brikx.routers.meal_plans import router as meal_plans_router
from brikx.routers.projects import phases_router
from brikx.routers.projects import router as projects_router
from brikx.routers.recipes import router as recipes_router
from brikx.routers.shopping_lists import router as shopping_lists_router
from brikx.routers.time_entries import router as time_entries_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="Brikx Personal Coach",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(phases_router)
app.include_router(time_entries_router)
app.include_router(billing_router)
app.include_router(recipes_router)
app.include_router(meal_plans_router)
app.include_router(shopping_lists_router)


@app.get("/")
def root():
    return {"status": "Brikx Personal Coach running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
