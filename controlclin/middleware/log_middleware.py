import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from controlclin.core.logger import logger

class LogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        store = getattr(request.app.state, "store", None)
        tenant = request.query_params.get("clinic_id") or (store.active_tenant_id if store else None)
        pending = store.sync_status.pending if store else False

        message = (
            f"Method: {request.method} | "
            f"Path: {request.url.path} | "
            f"Tenant: {tenant or '-'} | "
            f"Status: {response.status_code} | "
            f"Duration: {process_time:.4f}s"
            + (" | sync pending" if pending else "")
        )
        if response.status_code >= 500:
            logger.warning(message)
        else:
            logger.info(message)

        return response
