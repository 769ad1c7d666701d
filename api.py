"""
Shared storage API

FastAPI service exposing the shared collections used by every advisor:

    /api/benefits       benefits edits and plan identity edits
    /api/manual-plans   manually entered plans by provider
    /api/plan-edits     plan identity edits, one record per plan

Each route answers OPTIONS, GET, POST and DELETE. Responses are never cached.

Run with:
    python api.py
"""

import json
import logging
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import PortalConfig
from constants import BLOB_NAMESPACE, PLAN_EDITS_NAMESPACE
from blob_store import BlobStore, get_blob_store
from resources import (
    BenefitsResource,
    ManualPlansResource,
    PlanEditsResource,
    MissingFieldError,
)

logger = logging.getLogger(__name__)

RESPONSE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

ROUTE_METHODS = ["GET", "POST", "DELETE", "OPTIONS", "PUT", "PATCH"]


def _json(body: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=body, status_code=status_code, headers=RESPONSE_HEADERS)


async def _read_payload(request: Request) -> Dict[str, Any]:
    """JSON body as a dict; DELETE may pass its fields as query parameters instead."""
    raw = await request.body()
    if not raw:
        return dict(request.query_params)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise MissingFieldError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise MissingFieldError("Request body must be a JSON object")
    return payload


async def handle_resource(request: Request, resource, data_field: str,
                          post_key: str, delete_key: str) -> Response:
    """
    Dispatch a request to a resource.

    Args:
        request: Incoming request
        resource: BenefitsResource, ManualPlansResource or PlanEditsResource
        data_field: Response field holding the collection on GET
        post_key: Response field echoing the key written on POST
        delete_key: Response field echoing the key removed on DELETE
    """
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=RESPONSE_HEADERS)

    try:
        if request.method == "GET":
            return _json({"success": True, data_field: resource.get_all()})

        if request.method == "POST":
            payload = await _read_payload(request)
            key = resource.save(payload)
            return _json({"success": True, post_key: key})

        if request.method == "DELETE":
            payload = await _read_payload(request)
            key = resource.delete(payload)
            return _json({"success": True, delete_key: key})

        return _json({"success": False, "error": "Method not allowed"}, 405)

    except MissingFieldError as e:
        return _json({"success": False, "error": str(e)}, 400)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} failed: {e}", exc_info=True)
        return _json({"success": False, "error": str(e)}, 500)


def create_app(data_store: Optional[BlobStore] = None,
               plan_edits_store: Optional[BlobStore] = None,
               config: Optional[PortalConfig] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        data_store: Store for the benefits and manual-plans blobs
        plan_edits_store: Store for per-plan edit blobs
        config: Used to pick stores that were not passed in (default: from environment)

    Returns:
        FastAPI app
    """
    app = FastAPI(
        title="Insurance Portal Storage API",
        description="Shared benefits, plan edits and manual plans for the comparison portal",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Stores are opened on first use
    resources: Dict[str, Any] = {}

    def get_resources() -> Dict[str, Any]:
        if not resources:
            cfg = config or PortalConfig.from_environment()
            store = data_store or get_blob_store(BLOB_NAMESPACE, cfg)
            edits_store = plan_edits_store or get_blob_store(PLAN_EDITS_NAMESPACE, cfg)
            resources['benefits'] = BenefitsResource(store)
            resources['manual_plans'] = ManualPlansResource(store)
            resources['plan_edits'] = PlanEditsResource(edits_store)
        return resources

    @app.api_route("/api/benefits", methods=ROUTE_METHODS)
    async def benefits(request: Request):
        return await handle_resource(request, get_resources()['benefits'],
                                     "benefits", "planKey", "planKey")

    @app.api_route("/api/manual-plans", methods=ROUTE_METHODS)
    async def manual_plans(request: Request):
        return await handle_resource(request, get_resources()['manual_plans'],
                                     "plans", "providerKey", "planId")

    @app.api_route("/api/plan-edits", methods=ROUTE_METHODS)
    async def plan_edits(request: Request):
        return await handle_resource(request, get_resources()['plan_edits'],
                                     "edits", "planId", "planId")

    @app.get("/")
    def read_root():
        return {"message": "Insurance Portal Storage API running"}

    return app


app = create_app()


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%H:%M:%S',
        force=True
    )
    config = PortalConfig.from_environment()
    uvicorn.run(app, host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
