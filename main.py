"""
FastAPI backend for the daily fortune push.

Manual trigger and inspection endpoints, all served under the secret path
prefix (see safe_path.py). The daily run itself is started by the scheduler.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_cst_today
from fortune import build_daily_fortune_data, is_valid_date, parse_user_profile
from pipeline import execute_daily_fortune
from prompts import build_user_prompt, get_system_prompt
from safe_path import SafePathMiddleware, not_found_empty
from scheduler import start_scheduler

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_env()
    configure_logging(settings)
    scheduler = start_scheduler(settings)
    try:
        yield
    finally:
        if scheduler is not None:
            # Waits for a running push to complete
            scheduler.shutdown(wait=True)


# --- FastAPI App Initialization ---

app = FastAPI(
    title="每日运势推送",
    description="每日八字运势计算、AI 解读与 Bark 推送",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    redirect_slashes=False,
    lifespan=lifespan,
)

app.add_middleware(SafePathMiddleware)


@app.exception_handler(StarletteHTTPException)
async def hide_unknown_routes(request: Request, exc: StarletteHTTPException):
    # Unknown paths and wrong methods look the same as a missing prefix
    if exc.status_code in (404, 405):
        return not_found_empty()
    return await http_exception_handler(request, exc)


# --- Helper Functions ---

def get_settings(request: Request) -> Settings:
    settings = getattr(request.state, "settings", None)
    return settings if settings is not None else Settings.from_env()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# --- API Endpoints ---

@app.api_route("/", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def echo_method(request: Request):
    """Echo the request method, proving the prefix is right."""
    return PlainTextResponse(request.method)


@app.get("/health")
async def health():
    """Health check endpoint."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return {"status": "ok", "time": now}


@app.get("/trigger")
def trigger(request: Request):
    """Run the full pipeline now and report the outcome."""
    outcome = execute_daily_fortune(get_settings(request))
    return JSONResponse(
        status_code=200 if outcome.success else 500,
        content=outcome.model_dump(),
    )


@app.get("/preview")
def preview(request: Request, date: Optional[str] = None):
    """Fortune data for a date (default today), without AI or push."""
    settings = get_settings(request)
    try:
        user_profile = parse_user_profile(settings.user_profile)
        fortune_data = build_daily_fortune_data(user_profile, date or get_cst_today())
    except Exception as e:
        logger.error("preview failed: %s", e)
        return error_response(500, str(e))
    return fortune_data.model_dump(by_alias=True)


def render_prompt(settings: Settings, target_date: str) -> JSONResponse:
    if not target_date:
        return error_response(400, "Missing date. Use ?date=YYYY-MM-DD or /prompt/YYYY-MM-DD")
    if not is_valid_date(target_date):
        return error_response(400, "Invalid date. Expected YYYY-MM-DD")

    try:
        user_profile = parse_user_profile(settings.user_profile)
        fortune_data = build_daily_fortune_data(user_profile, target_date)
    except Exception as e:
        logger.error("prompt render failed: %s", e)
        return error_response(500, str(e))

    return JSONResponse(content={
        "date": target_date,
        "systemPrompt": get_system_prompt(settings.output_format),
        "userPrompt": build_user_prompt(fortune_data, settings.output_format),
    })


@app.get("/prompt")
def prompt_by_query(request: Request, date: Optional[str] = None):
    """System and user prompt for ?date=YYYY-MM-DD."""
    return render_prompt(get_settings(request), date or "")


@app.get("/prompt/{path_date:path}")
def prompt_by_path(request: Request, path_date: str, date: Optional[str] = None):
    """System and user prompt for /prompt/YYYY-MM-DD (query string wins)."""
    return render_prompt(get_settings(request), date or path_date)


# --- Run with: uvicorn main:app ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
