import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from pushrelay.core.config import settings
from pushrelay.routers import notifications as notifications_router
from pushrelay.services.notifications.service import init_notification_service

logger = logging.getLogger("app.requests")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # one provider (and its credentials) per process, shared by every request
    service = init_notification_service()
    logger.info("notification provider ready provider=%s", service.config.provider)
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

prefix = settings.API_PREFIX
app.include_router(notifications_router.router, prefix=prefix)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response

@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "env": settings.APP_ENV}
