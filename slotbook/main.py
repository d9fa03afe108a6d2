import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slotbook.db.init_db import create_database
from slotbook.db.base import Base
from slotbook.db.session import engine
from slotbook.core.config import settings
from slotbook.core.errors import DomainError, ErrorCode
from slotbook.api.v1.router import api_router
from slotbook.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.INVALID_CODE: 422,
    ErrorCode.TOO_LATE: 409,
    ErrorCode.INVALID_INPUT: 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)
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


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    reason = getattr(exc, "reason", None)
    body = ErrorResponse(
        error=exc.code.value,
        message=exc.message,
        reason=reason.value if reason is not None else None,
    )
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, 400),
        content=body.model_dump(exclude_none=True),
    )


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Slotbook"}
