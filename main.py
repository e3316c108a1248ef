from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import models  # noqa: F401  registers every table on Base.metadata
from config import UPLOAD_DIR
from database import Base, engine
from exceptions import VacationAppError
from services.fcm_service import initialize_firebase_admin
from utils.logger import setup_api_logger

from routes import (
    users,
    trips,
    trip_members,
    trip_invitations,
    user_invitations,
    activities,
    memories,
    notifications,
    friends,
    posts,
)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Vacations API (Trips, Members, Activities, Memories, Friends)")

# setup file logger for API failures
api_logger = setup_api_logger()
initialize_firebase_admin()


@app.exception_handler(VacationAppError)
async def app_error_handler(request: Request, exc: VacationAppError):
    api_logger.warning("%s on %s %s | status=%s | message=%s",
                       type(exc).__name__, request.method, request.url.path,
                       exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    api_logger.warning("HTTPException on %s %s | status=%s | detail=%s",
                       request.method, request.url.path, exc.status_code, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail},
                        headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    api_logger.warning("Invalid request on %s %s | errors=%s",
                       request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=422, content={"message": "Invalid request", "errors": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # log request info and stacktrace
    api_logger.error("Unhandled exception on %s %s | error=%s",
                     request.method, request.url.path, str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR), check_dir=False), name="uploads")

app.include_router(users.router)
app.include_router(trips.router)
app.include_router(trip_members.router)
app.include_router(trip_invitations.router)
app.include_router(user_invitations.router)
app.include_router(activities.router)
app.include_router(activities.router2)
app.include_router(memories.router)
app.include_router(memories.router2)
app.include_router(notifications.router)
app.include_router(friends.router)
app.include_router(posts.router)
