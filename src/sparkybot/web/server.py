"""
Web Server - FastAPI HTTP surface for SparkyBot.

Health check for the hosting platform plus a small JSON API over the
router and the approval queue.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from sparkybot.approval.queue import ApprovalError, ApprovalNotFoundError

if TYPE_CHECKING:
    from sparkybot.core.app import SparkyApp


def _approval_error_response(e: ApprovalError) -> JSONResponse:
    status = 404 if isinstance(e, ApprovalNotFoundError) else 409
    return JSONResponse({"success": False, "error": str(e)}, status_code=status)


class WebServer:
    """
    FastAPI web server for SparkyBot.

    Routes:
    - GET  /health
    - GET  /api/skills
    - POST /api/route
    - GET  /api/approvals
    - POST /api/approvals/{id}/approve | /reject
    """

    def __init__(self, app: "SparkyApp", host: str = "0.0.0.0", port: int = 8080):
        self._app = app
        self.host = host
        self.port = port

        self.fastapi = FastAPI(
            title="SparkyBot",
            description="Personal assistant skill routing",
            version="0.1.0",
        )
        self._setup_routes()
        self._server: Optional[uvicorn.Server] = None

    def _setup_routes(self):
        """Set up FastAPI routes."""

        @self.fastapi.get("/health")
        async def health():
            registry = self._app.registry
            return {
                "status": "ok" if self._app.is_running else "starting",
                "skills": len(registry.list_enabled()) if registry else 0,
                "timestamp": datetime.now().isoformat(),
            }

        @self.fastapi.get("/api/skills")
        async def skills():
            registry = self._app.registry
            items = registry.describe() if registry else []
            return {
                "skills": items,
                "count": len(items),
                "source": registry.source if registry else "none",
            }

        @self.fastapi.post("/api/route")
        async def route(request: Request):
            try:
                data = await request.json()
            except ValueError:
                data = None
            if not isinstance(data, dict):
                return JSONResponse({"success": False, "error": "Request body must be a JSON object"}, status_code=400)

            message = str(data.get("message") or "").strip()
            if not message:
                return JSONResponse({"success": False, "error": "No message provided"}, status_code=400)

            use_ai = data.get("use_ai")
            dispatch = await self._app.dispatch(
                message,
                str(data.get("conversation_id") or ""),
                use_ai=bool(use_ai) if use_ai is not None else None,
            )
            payload = dispatch.result.model_dump()
            payload["approval_id"] = dispatch.approval.id if dispatch.approval else None
            return payload

        @self.fastapi.get("/api/approvals")
        async def approvals():
            pending = await self._app.approvals.pending()
            return {"approvals": [r.to_dict() for r in pending], "count": len(pending)}

        @self.fastapi.post("/api/approvals/{request_id}/approve")
        async def approve(request_id: str):
            try:
                req = await self._app.approvals.approve(request_id)
            except ApprovalError as e:
                return _approval_error_response(e)
            return {"success": True, "approval": req.to_dict()}

        @self.fastapi.post("/api/approvals/{request_id}/reject")
        async def reject(request_id: str):
            try:
                req = await self._app.approvals.reject(request_id)
            except ApprovalError as e:
                return _approval_error_response(e)
            return {"success": True, "approval": req.to_dict()}

    async def start(self):
        """Start the web server."""
        config = uvicorn.Config(
            self.fastapi,
            host=self.host,
            port=self.port,
            log_level="info",
        )
        self._server = uvicorn.Server(config)

        logger.info(f"SparkyBot web server starting on http://{self.host}:{self.port}")
        await self._server.serve()

    async def stop(self):
        """Stop the web server."""
        if self._server:
            self._server.should_exit = True
