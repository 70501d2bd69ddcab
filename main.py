import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from curriculum import get_curriculum
from deps.generation import close_http_client
from fallback import pick_fallback
from generator import ProviderConfigurationError

# Routers
from routers.curriculum import router as curriculum_router
from routers.health import router as health_router
from routers.problems import router as problems_router

load_dotenv()

logger = logging.getLogger("practice-problems")
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

_PUBLIC_DIR = Path(__file__).resolve().parent / "public"


def _log_routes(app: FastAPI) -> None:
    logger.info("Registered routes:")
    for route in app.routes:
        if isinstance(route, APIRoute):
            logger.info("Path: %s, Methods: %s", route.path, ", ".join(sorted(route.methods)))
        else:
            logger.info("%s: %s", type(route).__name__, getattr(route, "path", ""))


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_curriculum()
    _log_routes(app)
    yield
    close_http_client()


app = FastAPI(title="Practice Problems API", lifespan=lifespan)

# Browser clients call from anywhere; no cookies involved
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # unknown path or wrong method on a known one
    if exc.status_code in (404, 405):
        logger.info("Unhandled route: %s %s", request.method, request.url.path)
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(ProviderConfigurationError)
async def provider_config_handler(request: Request, exc: ProviderConfigurationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": exc.error,
            "details": exc.details,
            "status": exc.status,
            "responseData": exc.response_data,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    grade = request.query_params.get("grade") or "unknown"
    topic = (request.query_params.get("topic") or "unknown").strip().lower()
    problem = pick_fallback(grade, topic)
    logger.info("Using fallback problem due to unhandled error: %s", problem.question)
    return JSONResponse(status_code=500, content=problem.model_dump())


# Register routers
app.include_router(problems_router)  # /generate-problem
app.include_router(curriculum_router)  # /get-curriculum-topics
app.include_router(health_router)  # /health

# Static front-end last so it never shadows the API
if _PUBLIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(_PUBLIC_DIR), html=True), name="public")


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "3000"))
    logger.info("Server running on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)
