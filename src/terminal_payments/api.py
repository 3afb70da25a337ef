"""HTTP API consumed by the terminal fleet."""

import logging
from typing import Optional, Dict, Any, Type, TypeVar, Union

import pydantic
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import create_limiter, verify_api_key
from .config import Settings
from .errors import TerminalPaymentsError, ValidationError
from .intents import IntentLifecycleManager
from .ledger import LedgerClientBase, get_ledger_client
from .models import Attribution
from .reporting import IdentitySelector, ReportingService, ReportingWindow

logger = logging.getLogger(__name__)

LIVENESS_MESSAGE = "Stripe Terminal backend running."

REPORT_FORMATS = ("json", "csv", "text")

BodyT = TypeVar("BodyT", bound=BaseModel)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class CreateIntentBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: int
    currency: str = Field(..., min_length=1)
    description: Optional[str] = None
    receipt_email: Optional[str] = None
    terminal_label: Optional[str] = None
    operator_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("operator_name", "staffName", "staff_name")
    )

    blank_strings_to_none = field_validator(
        "description", "receipt_email", "terminal_label", "operator_name", mode="before"
    )(_blank_to_none)


class CaptureIntentBody(BaseModel):
    payment_intent_id: str = Field(..., min_length=1)
    amount_to_capture: Optional[int] = Field(None, ge=0)

    @field_validator("amount_to_capture", mode="before")
    @classmethod
    def _omitted_amount(cls, value: Any) -> Any:
        # Terminals send 0 or "" to mean "capture everything"
        if value in (None, "", 0, "0"):
            return None
        return value


class UpdateIntentBody(BaseModel):
    payment_intent_id: Optional[str] = None
    receipt_email: Optional[str] = None


class ReportBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: Optional[Union[str, int, float]] = None
    end: Optional[Union[str, int, float]] = None
    terminal_label: Optional[str] = None
    operator_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("operator_name", "staffName", "staff_name")
    )
    reader_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("reader_id", "terminal_id")
    )

    blank_strings_to_none = field_validator(
        "start", "end", "terminal_label", "operator_name", "reader_id", mode="before"
    )(_blank_to_none)

    def selector(self) -> IdentitySelector:
        return IdentitySelector(
            terminal_label=self.terminal_label,
            operator_name=self.operator_name,
            reader_id=self.reader_id,
        )


async def _read_payload(request: Request) -> Dict[str, Any]:
    """Read a JSON or form-encoded body into a dict."""
    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        return {key: value for key, value in form.items()}
    raw = await request.body()
    if not raw:
        return {}
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Malformed JSON body")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _parse(model: Type[BodyT], payload: Dict[str, Any]) -> BodyT:
    """Validate a payload, reporting the first problem as a ValidationError."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "body"
        if error["type"] == "missing":
            raise ValidationError(f"Missing {field}") from e
        raise ValidationError(f"Invalid {field}: {error['msg']}") from e


def _intents(request: Request) -> IntentLifecycleManager:
    return request.app.state.intents


def _reporting(request: Request) -> ReportingService:
    return request.app.state.reporting


def _register_routes(app: FastAPI) -> None:
    auth = [Depends(verify_api_key)]

    @app.post("/connection_token", dependencies=auth)
    async def connection_token(request: Request):
        return await _intents(request).issue_connection_token()

    @app.post("/create_payment_intent", dependencies=auth)
    async def create_payment_intent(request: Request):
        payload = await _read_payload(request)
        logger.info(
            "POST /create_payment_intent "
            f"fields={sorted(k for k in payload if k != 'receipt_email')}"
        )
        body = _parse(CreateIntentBody, payload)
        created = await _intents(request).create(
            amount=body.amount,
            currency=body.currency,
            description=body.description,
            receipt_email=body.receipt_email,
            attribution=Attribution(
                terminal_label=body.terminal_label,
                operator_name=body.operator_name,
            ),
        )
        return {"intent": created.id, "secret": created.client_secret}

    @app.post("/capture_payment_intent", dependencies=auth)
    async def capture_payment_intent(request: Request):
        body = _parse(CaptureIntentBody, await _read_payload(request))
        captured = await _intents(request).capture(
            body.payment_intent_id, body.amount_to_capture
        )
        return {"intent": captured.id, "secret": captured.client_secret}

    @app.post("/update_payment_intent", dependencies=auth)
    async def update_payment_intent(request: Request):
        body = _parse(UpdateIntentBody, await _read_payload(request))
        payment_intent = await _intents(request).update_receipt_email(
            body.payment_intent_id or "", body.receipt_email or ""
        )
        return {"success": True, "paymentIntent": payment_intent}

    @app.post("/transactions_for_terminal", dependencies=auth)
    async def transactions_for_terminal(
        request: Request,
        format: str = Query(default="json", description="Output format: json, csv, text"),
    ):
        if format not in REPORT_FORMATS:
            raise ValidationError(f"format must be one of: {', '.join(REPORT_FORMATS)}")
        body = _parse(ReportBody, await _read_payload(request))
        selector = body.selector()
        if body.start is None or body.end is None or selector.is_empty():
            raise ValidationError(
                "Missing start, end, or terminal_label, operator_name or terminal_id"
            )

        service = _reporting(request)
        summary = await service.report(
            ReportingWindow(start=body.start, end=body.end, selector=selector)
        )
        if format == "json":
            return summary.to_response_dict()
        output = service.generate_report(summary, format=format)
        media_type = "text/csv" if format == "csv" else "text/plain"
        return PlainTextResponse(content=output, media_type=media_type)

    @app.get("/", response_class=PlainTextResponse)
    async def liveness():
        return LIVENESS_MESSAGE


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TerminalPaymentsError)
    async def terminal_error_handler(request: Request, exc: TerminalPaymentsError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    # SlowAPIMiddleware calls this handler synchronously
    def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429, content={"error": f"Rate limit exceeded: {exc.detail}"}
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


def create_app(
    settings: Optional[Settings] = None,
    ledger: Optional[LedgerClientBase] = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Runtime settings. Read from the environment if not provided.
        ledger: Ledger client. Built from settings if not provided.

    Returns:
        Configured FastAPI app.
    """
    settings = settings or Settings.from_env()
    ledger = ledger or get_ledger_client(settings=settings)

    app = FastAPI(title="Terminal Payments API")
    app.state.settings = settings
    app.state.ledger = ledger
    app.state.intents = IntentLifecycleManager(ledger, settings)
    app.state.reporting = ReportingService(ledger, settings)
    app.state.limiter = create_limiter(settings)
    app.add_middleware(SlowAPIMiddleware)

    _register_error_handlers(app)
    _register_routes(app)
    logger.info(f"API configured with {type(ledger).__name__}")
    return app
