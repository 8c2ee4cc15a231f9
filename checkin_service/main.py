import os
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from checkin_service.exceptions import CheckInServiceException, checkin_exception_handler
from checkin_service.event_sessions.router import router as event_sessions_router
from checkin_service.checkins.router import router as checkins_router
from checkin_service.programs.router import router as programs_router
from checkin_service.roster.router import router as roster_router
from checkin_service.db.postgres import create_schema

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if os.getenv("AUTO_CREATE_SCHEMA", "false").lower() == "true":
        logger.info("Creating database schema")
        await create_schema()
    yield


app = FastAPI(title="Church Check-In Service", lifespan=lifespan)

app.add_exception_handler(CheckInServiceException, checkin_exception_handler)

app.include_router(event_sessions_router)
app.include_router(checkins_router)
app.include_router(roster_router)
app.include_router(programs_router)

@app.get("/health")
def health():
    return {"status": "ok"}
