import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from petsitter_billing.api.routes import admin_router, billing_router
from petsitter_billing.config import get_settings

settings = get_settings()

logging.basicConfig(level=settings.log_level)

app = FastAPI(title=settings.app_name)
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["authorization", "content-type", "x-client-info", "apikey"],
    )


@app.middleware("http")
async def enforce_https(request: Request, call_next):
    if not settings.allow_insecure_http:
        proto = request.headers.get("x-forwarded-proto") or request.url.scheme
        if proto != "https":
            return JSONResponse(status_code=400, content={"detail": "HTTPS required"})
    return await call_next(request)


app.include_router(billing_router)
app.include_router(admin_router)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
