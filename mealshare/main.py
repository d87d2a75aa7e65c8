import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from mealshare.db.init_db import create_database
from mealshare.db.base import Base
from mealshare.db.session import engine, SessionLocal
from mealshare.core.config import settings
from mealshare.core.errors import MealshareError
from mealshare.schemas.common import ErrorResponse
from mealshare.api.v1.router import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def _listing_expiry_loop() -> None:
    """Background task: soft-close listings whose pickup window has ended."""
    from mealshare.utils.expiry import close_expired_listings

    while True:
        try:
            db = SessionLocal()
            try:
                count = close_expired_listings(db)
                if count:
                    logger.info("Closed %d expired listing(s).", count)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during listing expiry sweep.")
        await asyncio.sleep(settings.EXPIRY_SWEEP_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    sweep_task = asyncio.create_task(_listing_expiry_loop())
    yield

    # Shutdown: cancel background task
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MealshareError)
async def mealshare_error_handler(request: Request, exc: MealshareError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.code, message=exc.message).model_dump(),
    )


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def read_root():
    return {"Hello": "Mealshare"}
