import logging
from typing import Annotated, Any, TypeGuard

import fastapi
from kungfu import Error, Ok

from storefront._errors import ErrorKind, Errors, ShopError
from storefront.identity import Identity, TokenVerifier
from storefront.wire._app import Application
from storefront.wire._endpoint import Endpoint
from storefront.wire._types import Codec, Handler, Trigger
from storefront.wire.codecs.rrc import RequestResponseCodec
from storefront.wire.triggers.http import HTTPRouteTrigger, Path

logger = logging.getLogger(__name__)

STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.DEPENDENCY: 503,
}

AuthorizationHeader = Annotated[str | None, fastapi.Header()]


def http_error(err: ShopError) -> fastapi.HTTPException:
    """Only the public message crosses the wire; detail stays in the logs."""
    return fastapi.HTTPException(
        status_code=STATUS_CODES[err.kind],
        detail={"code": err.code, "message": err.public_message},
    )


def is_target(tc: tuple[Trigger, Codec]) -> TypeGuard[tuple[HTTPRouteTrigger, RequestResponseCodec]]:
    return isinstance(tc[0], HTTPRouteTrigger) and isinstance(tc[1], RequestResponseCodec)


def make_handler(
    trigger: HTTPRouteTrigger,
    codec: RequestResponseCodec,
    handler: Handler,
    verifier: TokenVerifier,
) -> Any:
    req_cls = codec.request
    resp_cls = codec.response

    def _caller(authorization: str | None) -> Identity | None:
        if trigger.auth == "none":
            return None
        identity = verifier.verify(authorization)
        if identity is None and trigger.auth == "required":
            raise http_error(Errors.unauthenticated())
        return identity

    async def _respond(command: Any, identity: Identity | None) -> Any:
        match await handler(command, identity):
            case Ok(value):
                return resp_cls.from_domain(value)  # type: ignore[attr-defined]
            case Error(err):
                logger.debug("%s %s -> %s (%s)", trigger.method, trigger.path, err.kind.value, err.code)
                raise http_error(err)

    if req_cls is None:

        async def _bare_handler(authorization: Any = None) -> Any:
            return await _respond(None, _caller(authorization))

        _bare_handler.__annotations__ = {
            "authorization": AuthorizationHeader,
            "return": resp_cls,
        }
        return _bare_handler

    async def _route_handler(req: Any, authorization: Any = None) -> Any:
        return await _respond(req.to_domain(), _caller(authorization))

    param: Any = Annotated[req_cls, fastapi.Query()] if trigger.reads_query else req_cls
    _route_handler.__annotations__ = {
        "req": param,
        "authorization": AuthorizationHeader,
        "return": resp_cls,
    }
    return _route_handler


def compile_to_fastapi_route(
    endp: Endpoint,
    verifier: TokenVerifier,
) -> list[tuple[HTTPRouteTrigger, Any]]:  # (trigger, route_func)
    routes: list[tuple[HTTPRouteTrigger, Any]] = []

    for exposure in endp.exposures:
        if not is_target(exposure):
            continue

        http_trigger, req_resp_codec = exposure
        handler = make_handler(http_trigger, req_resp_codec, endp.handler, verifier)
        routes.append((http_trigger, handler))

    return routes


def add_endpoint_to_app(
    app: fastapi.FastAPI,
    endp: Endpoint,
    verifier: TokenVerifier,
) -> None:
    for trigger, handler in compile_to_fastapi_route(endp, verifier):
        route_method = getattr(app, trigger.method.lower(), None)
        if route_method is None:
            raise ValueError(f"Unsupported HTTP method: {trigger.method}")

        route_method(trigger.path, status_code=trigger.status_code)(handler)


def route_table(app: Application) -> list[tuple[str, Path]]:
    """(method, path) for every HTTP exposure, in mount order."""
    return [
        (trigger.method, trigger.path)
        for endp in app.endpoints
        for trigger, _ in endp.exposures
        if isinstance(trigger, HTTPRouteTrigger)
    ]


def from_application(app: Application, verifier: TokenVerifier, **options: Any) -> fastapi.FastAPI:
    f_app = fastapi.FastAPI(**options)

    for endp in app.endpoints:
        add_endpoint_to_app(f_app, endp, verifier)

    return f_app
