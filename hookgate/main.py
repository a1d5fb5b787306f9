import logging
from typing import Annotated

from fastapi import FastAPI, Response, Request, Depends, Header, HTTPException, status
from starlette.concurrency import run_in_threadpool

from hookgate.config import get_settings
from hookgate.logging_utils import setup_logging, RequestLoggingMiddleware, log_hook_data
from hookgate.metrics import record_hook_outcome, get_metrics, get_metrics_content_type
from hookgate.schemas import ErrorResponse, HealthResponse, HookResponse
from hookgate.signature import SecretSource, validate_payload
from hookgate.sources import FileSecretSource


settings = get_settings()

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Hook Gate",
    description="Receives webhook deliveries and authenticates them against hierarchical HMAC secrets",
    version="1.0.0",
)

app.add_middleware(RequestLoggingMiddleware)


def get_secret_source() -> SecretSource:
    """
    Dependency returning the configured secret-bytes provider.
    The file is read again for every delivery.
    """
    return FileSecretSource(get_settings().HMAC_SECRET_FILE)


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness probe - always returns 200 once the app is running."""
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
async def health_ready(
    response: Response,
    secret_source: SecretSource = Depends(get_secret_source),
) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the secret store can be read.
    Otherwise returns 503 (Service Unavailable).
    """
    try:
        await run_in_threadpool(secret_source)
    except OSError as e:
        logger.error(f"Secret store not readable: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not_ready", reason="secret store not readable")

    return HealthResponse(status="ready")


# =============================================================================
# Hook Route
# =============================================================================

def _reject(request: Request, status_code: int, detail: str, result: str, event=None, delivery=None):
    record_hook_outcome(result)
    log_hook_data(request=request, event=event, delivery=delivery, result=result)
    raise HTTPException(status_code=status_code, detail=detail)


@app.post(
    "/hook",
    response_model=HookResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed delivery"},
        403: {"model": ErrorResponse, "description": "Missing or invalid signature"},
    }
)
async def hook(
    request: Request,
    x_github_event: Annotated[str | None, Header(alias="X-GitHub-Event")] = None,
    x_github_delivery: Annotated[str | None, Header(alias="X-GitHub-Delivery")] = None,
    content_type: Annotated[str | None, Header(alias="Content-Type")] = None,
    secret_source: SecretSource = Depends(get_secret_source),
) -> HookResponse:
    """
    Authenticate an inbound event delivery.

    Headers:
        - X-GitHub-Event: event name (required)
        - X-Hub-Signature: "sha1=" + hex HMAC-SHA1 of the raw body, keyed with a
          secret configured for the payload's repository, organization or globally
        - Content-Type: application/json

    The response never says why a signature was rejected.
    """
    raw_body = await request.body()

    if not x_github_event:
        _reject(request, status.HTTP_400_BAD_REQUEST, "missing X-GitHub-Event header", "bad_request",
                delivery=x_github_delivery)

    signature = request.headers.get(settings.SIGNATURE_HEADER)
    if not signature:
        _reject(request, status.HTTP_403_FORBIDDEN, "missing signature", "missing_signature",
                event=x_github_event, delivery=x_github_delivery)

    if not content_type or content_type.split(";")[0].strip() != "application/json":
        _reject(request, status.HTTP_400_BAD_REQUEST, "only application/json payloads are accepted",
                "bad_request", event=x_github_event, delivery=x_github_delivery)

    valid = await run_in_threadpool(validate_payload, raw_body, signature, secret_source)
    if not valid:
        _reject(request, status.HTTP_403_FORBIDDEN, "invalid signature", "invalid_signature",
                event=x_github_event, delivery=x_github_delivery)

    logger.info(f"Accepted {x_github_event} event, delivery {x_github_delivery}")
    record_hook_outcome("accepted")
    log_hook_data(request=request, event=x_github_event, delivery=x_github_delivery, result="accepted")

    return HookResponse(event=x_github_event)


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus-style metrics."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
