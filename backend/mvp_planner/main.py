import logging
import os
from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers every table on Base.metadata
from .constants import ADMIN_USERNAME
from .database import Base, SessionLocal, engine
from .models.user import User
from .routes.ai import router as ai_router
from .routes.auth import router as auth_router
from .routes.mvp_plans import router as mvp_plans_router
from .routes.project_items import router as project_items_router
from .routes.projects import router as projects_router
from .services.auth_utils import hash_password


# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def seed_admin() -> None:
    """Create the admin account on first start."""
    db = SessionLocal()
    try:
        if db.query(User).filter(User.username == ADMIN_USERNAME).first() is None:
            db.add(
                User(
                    id=uuid4(),
                    username=ADMIN_USERNAME,
                    hashed_password=hash_password(os.getenv("ADMIN_PASSWORD", "admin")),
                )
            )
            db.commit()
            print(f"   Admin account created: {ADMIN_USERNAME}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    print("Starting MVP Planner")
    Base.metadata.create_all(bind=engine)
    seed_admin()
    print(f"   OpenAI Key:  {' Configured' if os.getenv('OPENAI_API_KEY') else ' Not set (generation will fail)'}")
    print(f"   Model:       {os.getenv('OPENAI_MODEL', 'gpt-4.1')}")
    print("   Ready to plan MVPs!")

    yield

    print("Shutting down MVP Planner")


app = FastAPI(
    title="MVP Planner",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


_cors_origins = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
    ).split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
)

app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(project_items_router)
app.include_router(ai_router)
app.include_router(mvp_plans_router)


@app.get(
    "/",
    summary="API Root",
    description="Welcome endpoint with API information",
    tags=["General"]
)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "MVP Planner",
        "version": "0.1.0",
        "description": "Guided MVP planning with AI-generated plans, timelines, KPIs and diagrams",
        "docs": "/docs",
        "endpoints": {
            "projects": "/api/projects",
            "generate": "POST /api/ai/generate-all",
            "plans": "/api/mvp-plans",
            "health": "GET /health",
        }
    }


@app.get(
    "/health",
    summary="Global Health Check",
    description="Check if the API server is running",
    tags=["General"]
)
async def health():
    """Global health check endpoint."""
    return {
        "status": "healthy",
        "service": "mvp-planner",
        "version": "0.1.0"
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body/path/query schema errors come back as 400 with per-field messages."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request data", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if os.getenv("DEBUG", "false").lower() == "true" else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mvp_planner.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "true").lower() == "true",
    )
