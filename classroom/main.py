import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from classroom.core.config import settings
from classroom.core.error_handlers import register_error_handlers
from classroom.core.logging_middleware import LoggingMiddleware
from classroom.db.init_db import init_db
from classroom.graphql.schema import graphql_router
from classroom.routers.assignments import router as assignments_router
from classroom.routers.auth import router as auth_router

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title=settings.PROJECT_NAME)

# Middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Service errors -> HTTP status codes
register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(assignments_router, prefix="/assignments", tags=["assignments"])
app.include_router(graphql_router, prefix="/graphql", tags=["graphql"])
