from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.errors import FileShareError, file_share_error_handler
from app.core.network import get_local_ip
from app.routes.files import router as files_router
from app.routes.realtime import router as realtime_router, file_updates

settings = get_settings()
local_ip = get_local_ip()

app = FastAPI(
    title="LAN File Share API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Local development origin plus the UI served from this host's LAN address
origins = list(settings.cors_origins) + [f"http://{local_ip}:{settings.frontend_port}"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

app.add_exception_handler(FileShareError, file_share_error_handler)

# Include routers
app.include_router(files_router)
app.include_router(realtime_router)

# Health check
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


# Real-time channel on its own port, served alongside the API
realtime_app = FastAPI(title="LAN File Share updates", docs_url=None, redoc_url=None, openapi_url=None)
realtime_app.add_api_websocket_route("/", file_updates)
