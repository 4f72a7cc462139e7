import logging

from fastapi import FastAPI

from childcare.core.config import settings
from childcare.core.errors import register_error_handlers
from childcare.core.logging_middleware import LoggingMiddleware
from childcare.db.init_db import init_db
from childcare.routers.assignments import router as assignments_router
from childcare.routers.auth import router as auth_router
from childcare.routers.submissions import router as submissions_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(title=settings.APP_NAME)

# Middleware
app.add_middleware(LoggingMiddleware)

# {"success": false, "error": ...} for every error response
register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


api = settings.API_PREFIX

# Include routers
app.include_router(auth_router, prefix=f"{api}/auth", tags=["auth"])
# submission routes share the /assignments prefix with the assignment CRUD
app.include_router(submissions_router, prefix=f"{api}/assignments", tags=["submissions"])
app.include_router(assignments_router, prefix=f"{api}/assignments", tags=["assignments"])
