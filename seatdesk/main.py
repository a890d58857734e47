import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from seatdesk.db.init_db import create_database, init_db
from seatdesk.db.base import Base
from seatdesk.db.session import engine, SessionLocal
from seatdesk.core.config import settings
from seatdesk.core.errors import SeatingError
from seatdesk.api.v1.router import api_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists, create tables, seed admin and default seats
    create_database()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        init_db(db)
    except SeatingError:
        logger.exception("Startup seeding failed.")
    finally:
        db.close()
    yield


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


@app.exception_handler(SeatingError)
async def seating_error_handler(request: Request, exc: SeatingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Seating error on %s: %s", request.url.path, exc.message)
    else:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Seatdesk"}
