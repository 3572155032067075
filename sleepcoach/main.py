"""FastAPI app: logging, CORS, router registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from .api.planner import router as planner_router
from .core.settings import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SleepCoach API",
    version="1.0.0",
    description="SleepCoach - wake-window learning, nap schedule and caregiver tips",
)

cors_origins = settings.CORS_ORIGINS.copy()
if settings.CORS_EXTRA_ORIGINS:
    cors_origins.extend([o.strip() for o in settings.CORS_EXTRA_ORIGINS.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(planner_router)


@app.get("/health")
async def health():
    return {"status": "ok", "timezone": settings.TIMEZONE}


def run():
    import uvicorn

    logger.info(f"Starting SleepCoach API on {settings.HOST}:{settings.PORT}")
    uvicorn.run("sleepcoach.main:app", host=settings.HOST, port=settings.PORT)
