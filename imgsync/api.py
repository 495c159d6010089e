from __future__ import annotations

import logging
import os
from functools import lru_cache

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import db
from .api_models import CheckRequest
from .errors import InvalidRequest
from .platform import CloudRunPlatform
from .reconciler import ConvergenceDriver

app = FastAPI(title="Image Drift Reconciler")


@lru_cache(maxsize=1)
def get_platform() -> CloudRunPlatform:
    # One platform handle per process.
    return CloudRunPlatform()


def get_driver(platform: CloudRunPlatform = Depends(get_platform)) -> ConvergenceDriver:
    return ConvergenceDriver(platform)


@app.on_event("startup")
def startup() -> None:
    logging.basicConfig(
        level=os.getenv("IMGSYNC_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db.init_db()


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors or any(tuple(e.get("loc", ()))[:1] != ("body",) for e in errors):
        return await request_validation_exception_handler(request, exc)
    db.log_event("WARN", f"{InvalidRequest.code}: rejected request with wrong / missing body")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Wrong / Missing request body",
            "error": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors],
        },
    )


@app.get("/health")
def health() -> dict:
    return {"status": "healthy"}


@app.get("/events")
def events(limit: int = Query(50, ge=1, le=1000)) -> list[dict]:
    return db.latest_events(limit)


@app.post("/")
@app.post("/check")
def check_cloud_run(req: CheckRequest, driver: ConvergenceDriver = Depends(get_driver)) -> JSONResponse:
    identity = req.identity()
    db.log_event("INFO", f"Checking {identity.parent}", service_name=identity.service_name)
    result = driver.run(identity)
    return JSONResponse(status_code=result.status_code, content=result.to_response())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
