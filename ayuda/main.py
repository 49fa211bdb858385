import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from ayuda.api import categories, chat, profile
from ayuda.config import settings
from ayuda.db.database import init_db

app = FastAPI(
    title="Ayuda",
    description="Voice emergency assistant: first-aid guidance backend",
    version="0.1.0"
)


@app.on_event("startup")
def on_startup():
    """Configure logging and create the SQLite profile table."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()


# Register routers
app.include_router(chat.router, prefix="/chat", tags=["Chat"])
app.include_router(categories.router, prefix="/categories", tags=["Categories"])
app.include_router(profile.router, prefix="/profile", tags=["Profile"])


@app.get("/")
async def root():
    return {"message": "Welcome to Ayuda", "status": "healthy"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Ensure all errors return JSON so clients can show them."""
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    logging.getLogger(__name__).exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc),
            "error": "internal_error",
        },
    )
