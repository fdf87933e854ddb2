"""HTTP surface of the faucet.

A single endpoint, ``POST /``, accepting ``{"chain-id": ..., "address": ...}``.

Responses:
- 201: ``{"address": ..., "amount": ...}``
- 400: malformed payload, invalid address or chain id mismatch
- 429: address is rate limited
- 500: build, sign or broadcast failure
- 502: request body could not be read
"""

import asyncio
import logging
import math
import time
import uuid

import aiohttp
from aiohttp import http_exceptions, web
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from drip.errors import ChainMismatch, FaucetError, MalformedRequest, RateLimited
from drip.observability.logging import clear_request_id, set_request_id
from drip.observability.metrics import REQUEST_DURATION, REQUESTS

from .service import FaucetService

logger = logging.getLogger(__name__)


class FaucetRequest(BaseModel):
    """Inbound faucet request body."""

    model_config = ConfigDict(populate_by_name=True)

    chain_id: str = Field(alias="chain-id")
    address: str


def respond_with_error(status: int, message: str, headers: dict | None = None) -> web.Response:
    return web.json_response({"error": message}, status=status, headers=headers)


class FaucetHandler:
    """aiohttp request handler driving :class:`FaucetService`.

    Parameters
    ----------
    service : FaucetService
        The faucet service.
    """

    def __init__(self, service: FaucetService):
        self._service = service

    async def handle(self, request: web.Request) -> web.Response:
        set_request_id(uuid.uuid4().hex)
        start = time.monotonic()
        try:
            response = await self._handle(request)
        finally:
            clear_request_id()
        REQUESTS.labels(status=str(response.status)).inc()
        REQUEST_DURATION.observe(time.monotonic() - start)
        return response

    async def _handle(self, request: web.Request) -> web.Response:
        logger.info("Handling faucet request", extra={"remote": request.remote})

        try:
            body = await request.read()
        except (
            ConnectionError,
            asyncio.IncompleteReadError,
            aiohttp.ClientPayloadError,
            http_exceptions.HttpProcessingError,
        ) as e:
            logger.error("Failed to read request body", extra={"error": str(e)})
            return respond_with_error(502, "Failed to read request body")

        try:
            faucet_request = FaucetRequest.model_validate_json(body)
        except ValidationError:
            message = (
                f"Failed to unmarshal request payload: {body.decode('utf-8', errors='replace')}"
            )
            logger.info(message)
            return respond_with_error(400, message)

        address = faucet_request.address
        try:
            result = await self._service.request_funds(faucet_request.chain_id, address)
        except (ChainMismatch, MalformedRequest) as e:
            logger.info("Rejected faucet request", extra={"address": address, "error": str(e)})
            return respond_with_error(400, str(e))
        except RateLimited as e:
            wait_seconds = e.wait.total_seconds()
            logger.info(
                "Address hit rate limit",
                extra={"address": address, "wait_seconds": wait_seconds},
            )
            return respond_with_error(
                429, str(e), headers={"Retry-After": str(max(1, math.ceil(wait_seconds)))}
            )
        except FaucetError as e:
            logger.error(
                "Faucet send failed",
                extra={"address": address, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return respond_with_error(500, str(e))
        except Exception as e:
            # Re-raise system-level exceptions
            if isinstance(e, (KeyboardInterrupt, SystemExit)):
                raise
            logger.exception("Unexpected error handling faucet request")
            return respond_with_error(500, f"internal error: {type(e).__name__}")

        logger.info(
            "Faucet request fulfilled",
            extra={"address": result.address, "amount": str(result.amount)},
        )
        return web.json_response(
            {"address": result.address, "amount": str(result.amount)},
            status=201,
        )


def create_app(handler: FaucetHandler) -> web.Application:
    """Build the faucet aiohttp application."""
    app = web.Application()
    app.router.add_post("/", handler.handle)
    return app


class FaucetServer:
    """HTTP server exposing the faucet endpoint.

    Parameters
    ----------
    handler : FaucetHandler
        Request handler.
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    """

    def __init__(self, handler: FaucetHandler, host: str = "0.0.0.0", port: int = 8000):  # noqa: S104
        self._handler = handler
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    async def start(self) -> None:
        """Start serving faucet requests."""
        self._runner = web.AppRunner(create_app(self._handler))
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info(
            "Faucet server started",
            extra={"host": self._host, "port": self._port},
        )

    async def stop(self) -> None:
        """Stop the faucet server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Faucet server stopped")
