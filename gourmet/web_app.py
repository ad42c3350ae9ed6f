from __future__ import annotations

from collections import OrderedDict
import logging
from pathlib import Path
import secrets
import threading

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from gourmet.config import Settings, get_settings
from gourmet.controller import InvalidTransition, ViewStateController
from gourmet.errors import InvalidParameters, MissingCredentials, SearchError
from gourmet.gateway import SearchGateway
from gourmet.location import LOCATION_TIMEOUT_MS, BrowserLocationReport
from gourmet.models import DEFAULT_RANGE_CODE, RANGE_BANDS, Query, Screen, SortKey, range_label
from gourmet.providers import get_provider

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))

SESSION_COOKIE = "gourmet_session"
MAX_SESSIONS = 256

MISSING_PARAMETERS_ERROR = "必須パラメータが不足しています"
MISSING_KEY_ERROR = "APIキーが設定されていません"
UPSTREAM_ERROR = "データの取得に失敗しました"

SORT_OPTIONS = [
    {"key": SortKey.DISTANCE.value, "label": "近い順"},
    {"key": SortKey.PRICE.value, "label": "安い順"},
]


class ControllerRegistry:
    """In-memory controllers keyed by session id, least recently used evicted first."""

    def __init__(self, gateway: SearchGateway, demo_fallback: bool, max_sessions: int = MAX_SESSIONS) -> None:
        self.gateway = gateway
        self.demo_fallback = demo_fallback
        self.max_sessions = max_sessions
        self._controllers: OrderedDict[str, ViewStateController] = OrderedDict()
        # Routes run in the threadpool; lookups and evictions must not interleave.
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._controllers)

    def get(self, session_id: str | None) -> tuple[str, ViewStateController]:
        with self._lock:
            if session_id and session_id in self._controllers:
                self._controllers.move_to_end(session_id)
                return session_id, self._controllers[session_id]

            session_id = secrets.token_urlsafe(16)
            controller = ViewStateController(self.gateway, demo_fallback=self.demo_fallback)
            self._controllers[session_id] = controller
            while len(self._controllers) > self.max_sessions:
                evicted, _ = self._controllers.popitem(last=False)
                logger.debug("Evicted session %s", evicted)
            return session_id, controller


def create_app(
    settings: Settings | None = None,
    gateway: SearchGateway | None = None,
    max_sessions: int = MAX_SESSIONS,
) -> FastAPI:
    settings = settings or get_settings()
    gateway = gateway or SearchGateway(get_provider(settings.provider), settings)

    app = FastAPI(title="Gourmet Search")
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.controllers = ControllerRegistry(gateway, settings.demo_fallback, max_sessions)

    def _session(request: Request) -> tuple[str, ViewStateController]:
        return app.state.controllers.get(request.cookies.get(SESSION_COOKIE))

    def _back_to_screen(session_id: str) -> RedirectResponse:
        response = RedirectResponse(url="/", status_code=303)
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
        return response

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/search")
    def api_search(lat: str | None = None, lng: str | None = None, range: str | None = None):
        try:
            query = _parse_query(lat, lng, range)
        except InvalidParameters:
            logger.warning("Rejected search with lat=%r lng=%r range=%r", lat, lng, range)
            return JSONResponse(status_code=400, content={"error": MISSING_PARAMETERS_ERROR})

        try:
            shops = app.state.gateway.search(query)
        except MissingCredentials:
            return JSONResponse(status_code=500, content={"error": MISSING_KEY_ERROR})
        except InvalidParameters:
            return JSONResponse(status_code=400, content={"error": MISSING_PARAMETERS_ERROR})
        except SearchError as error:
            return JSONResponse(status_code=500, content={"error": UPSTREAM_ERROR, "details": str(error)})

        return {
            "results": {
                "provider": app.state.gateway.provider.kind.value,
                "results_returned": len(shops),
                "shop": [shop.to_dict() for shop in shops],
            }
        }

    @app.get("/")
    def home(request: Request):
        session_id, controller = _session(request)
        response = TEMPLATES.TemplateResponse(
            request=request,
            name="index.html",
            context=_screen_context(request, controller, app.state.gateway),
        )
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
        return response

    @app.post("/location")
    def location(
        request: Request,
        lat: str | None = Form(None),
        lng: str | None = Form(None),
        error_code: str | None = Form(None),
    ):
        session_id, controller = _session(request)
        controller.acquire_location(BrowserLocationReport(lat=lat, lng=lng, error_code=error_code))
        return _back_to_screen(session_id)

    @app.post("/search")
    def search(request: Request, range: str = Form(str(DEFAULT_RANGE_CODE))):
        session_id, controller = _session(request)
        controller.submit_search(_parse_range(range) or DEFAULT_RANGE_CODE)
        return _back_to_screen(session_id)

    @app.post("/sort")
    def sort(request: Request, sort_key: str = Form(...)):
        session_id, controller = _session(request)
        try:
            controller.set_sort(sort_key)
        except ValueError:
            raise HTTPException(status_code=400, detail="Unknown sort key") from None
        return _back_to_screen(session_id)

    @app.post("/page")
    def page(request: Request, page: int = Form(...)):
        session_id, controller = _session(request)
        controller.go_to_page(page)
        return _back_to_screen(session_id)

    @app.post("/shops/{shop_id}")
    def shop_detail(request: Request, shop_id: str):
        session_id, controller = _session(request)
        if controller.find_shop(shop_id) is None:
            raise HTTPException(status_code=404, detail="Shop not found")
        try:
            controller.show_detail(shop_id)
        except InvalidTransition:
            raise HTTPException(status_code=409, detail="Shop details are opened from the results list") from None
        return _back_to_screen(session_id)

    @app.post("/back")
    def back(request: Request):
        session_id, controller = _session(request)
        controller.go_back()
        return _back_to_screen(session_id)

    return app


def _parse_range(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value in RANGE_BANDS else None


def _parse_query(lat: str | None, lng: str | None, range_code: str | None) -> Query:
    if not lat or not lng or not range_code:
        raise InvalidParameters("lat, lng and range are required")
    try:
        return Query(lat=float(lat), lng=float(lng), range_code=int(range_code))
    except ValueError:
        raise InvalidParameters("lat, lng and range must be numeric") from None


def _screen_context(request: Request, controller: ViewStateController, gateway: SearchGateway) -> dict[str, object]:
    state = controller.state
    first, last = controller.page_window()
    return {
        "request": request,
        "state": state,
        "screen": state.screen.value,
        "visible_shops": controller.visible_shops() if state.screen is Screen.RESULTS else [],
        "total_count": len(state.results),
        "total_pages": controller.total_pages(),
        "first_item": first,
        "last_item": last,
        "range_options": [
            {"code": code, "label": range_label(code), "selected": code == state.query.range_code}
            for code in RANGE_BANDS
        ],
        "range_text": f"{state.query.range_meters}m" if state.query.range_meters else "",
        "sort_options": SORT_OPTIONS,
        "has_location": state.query.is_valid,
        "location_timeout_ms": LOCATION_TIMEOUT_MS,
        "provider_name": gateway.provider.display_name,
        "provider_home_url": gateway.provider.home_url,
    }
