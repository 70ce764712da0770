"""
Main application entry point - FastAPI app instance and configuration.
This is where the ASGI application is created and configured.
Run with: uvicorn app.main:app --reload
"""

from fastapi import FastAPI  # The FastAPI framework
from fastapi.middleware.cors import CORSMiddleware  # Cross-Origin Resource Sharing

from app.core.config import settings  # Application settings
from app.routers import assistant  # Range inference, streamed reply, action execution
from app.routers import calendar  # Event listing

# ---------------------------------------------------------------------------
# CREATE FASTAPI APPLICATION
# ---------------------------------------------------------------------------
# - docs_url: Swagger UI, http://localhost:8000/docs
# - redoc_url: ReDoc, http://localhost:8000/redoc
app = FastAPI(
    title=settings.APP_NAME,  # "Calendar Assistant"
    debug=settings.DEBUG,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ---------------------------------------------------------------------------
# CORS MIDDLEWARE
# ---------------------------------------------------------------------------
# The chat client runs on a different origin than the API and sends the
# Google access token in a custom "token" header, so any header is allowed.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# REGISTER ROUTERS
# ---------------------------------------------------------------------------
# assistant.router: /assistant/range, /assistant/stream, /assistant/execute
# calendar.router: /calendar/events
app.include_router(assistant.router)
app.include_router(calendar.router)


# ---------------------------------------------------------------------------
# HEALTH CHECK ENDPOINT
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
def health_check():
    """
    Simple health check endpoint.

    Does NOT call Gemini or Google Calendar.

    Returns:
        {"status": "ok"}
    """
    return {"status": "ok"}
