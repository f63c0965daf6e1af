"""Wallet gateway used to charge vote fees.

PassVote never builds or signs transactions. Balances are read from a
Horizon-compatible API and payments are delegated to an external wallet
signer service that owns the voter's keys.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

import httpx

from passvote.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_NOT_FOUND = 404
HTTP_BAD_REQUEST = 400


class WalletError(RuntimeError):
    """Raised when the wallet or ledger network cannot complete a request."""


class PaymentNotConfirmed(WalletError):
    """The signer acknowledged a payment but its reply could not be read.

    The transfer may have been submitted, so this must never be treated as
    a payment that did not happen.
    """


@dataclass(frozen=True)
class PaymentReceipt:
    """Proof that an irreversible transfer was submitted and accepted."""

    transaction_hash: str
    source: str
    destination: str
    amount: Decimal


class WalletGateway(Protocol):
    """Operations the payment coordinator needs from a wallet."""

    async def is_session_active(self, address: str) -> bool: ...

    async def get_balance(self, address: str) -> Decimal: ...

    async def pay(
        self,
        source: str,
        destination: str,
        amount: Decimal,
        *,
        idempotency_key: str,
    ) -> PaymentReceipt: ...


@dataclass(frozen=True)
class WalletConfig:
    """Immutable configuration for wallet operations."""

    horizon_url: str
    signer_url: str
    timeout_seconds: float


def load_wallet_config() -> WalletConfig:
    """Build configuration object from global settings."""
    return WalletConfig(
        horizon_url=settings.wallet_horizon_url,
        signer_url=settings.wallet_signer_url,
        timeout_seconds=float(settings.wallet_http_timeout_seconds),
    )


def _json_object(response: httpx.Response, what: str) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as err:
        raise WalletError(f"Malformed {what} response: body is not JSON") from err
    if not isinstance(payload, dict):
        raise WalletError(f"Malformed {what} response: expected a JSON object")
    return payload


class HttpWalletGateway:
    """HTTP client wrapper for Horizon balance lookups and signer payments."""

    def __init__(
        self,
        config: WalletConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_wallet_config()
        self._transport = transport
        self._horizon: httpx.AsyncClient | None = None
        self._signer: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _clients(self) -> tuple[httpx.AsyncClient, httpx.AsyncClient]:
        async with self._client_lock:
            if self._horizon is None or self._signer is None:
                timeout = httpx.Timeout(self.config.timeout_seconds)
                self._horizon = httpx.AsyncClient(
                    base_url=self.config.horizon_url,
                    timeout=timeout,
                    transport=self._transport,
                )
                self._signer = httpx.AsyncClient(
                    base_url=self.config.signer_url,
                    timeout=timeout,
                    transport=self._transport,
                )
        return self._horizon, self._signer

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return await client.request(method, path, json=json_data, headers=headers)
        except httpx.HTTPError as exc:
            raise WalletError(f"Wallet request {method} {path} failed: {exc}") from exc

    async def is_session_active(self, address: str) -> bool:
        """Ask the signer whether the voter's wallet is connected."""
        _, signer = await self._clients()
        response = await self._request(signer, "GET", f"/sessions/{address}")
        if response.status_code == HTTP_NOT_FOUND:
            return False
        if response.status_code != HTTP_OK:
            raise WalletError(f"Unexpected signer response ({response.status_code}) for session")
        return bool(_json_object(response, "session").get("active", False))

    async def get_balance(self, address: str) -> Decimal:
        """Return the native-asset balance of ``address``; unfunded accounts hold zero."""
        horizon, _ = await self._clients()
        response = await self._request(horizon, "GET", f"/accounts/{address}")
        if response.status_code == HTTP_NOT_FOUND:
            return Decimal("0")
        if response.status_code != HTTP_OK:
            raise WalletError(f"Unexpected Horizon response ({response.status_code}) for account")

        balances = _json_object(response, "account").get("balances") or []
        for entry in balances:
            if isinstance(entry, dict) and entry.get("asset_type") == "native":
                try:
                    return Decimal(str(entry.get("balance", "0")))
                except InvalidOperation as err:
                    raise WalletError("Horizon returned a malformed balance") from err
        return Decimal("0")

    async def pay(
        self,
        source: str,
        destination: str,
        amount: Decimal,
        *,
        idempotency_key: str,
    ) -> PaymentReceipt:
        """Submit a native payment through the signer. The transfer is irreversible.

        Raises:
            WalletError: the signer refused the payment or could not be reached.
            PaymentNotConfirmed: the signer answered 2xx but the reply does not
                say whether the transfer happened.
        """
        _, signer = await self._clients()
        response = await self._request(
            signer,
            "POST",
            "/payments",
            json_data={
                "source": source,
                "destination": destination,
                "amount": str(amount),
                "asset": "native",
            },
            headers={"Idempotency-Key": idempotency_key},
        )
        if response.status_code >= HTTP_BAD_REQUEST:
            detail = response.text or str(response.status_code)
            raise WalletError(f"Signer rejected payment: {detail}")

        try:
            payload = _json_object(response, "payment")
        except WalletError as err:
            raise PaymentNotConfirmed(str(err)) from err
        if payload.get("successful") is False:
            raise WalletError(payload.get("error") or "Signer reported the payment as failed")

        tx_hash = payload.get("hash") or payload.get("transaction_hash")
        if not tx_hash:
            raise PaymentNotConfirmed("Signer accepted the payment without a transaction hash")

        logger.info("Payment of %s from %s submitted as %s", amount, source, tx_hash)
        return PaymentReceipt(
            transaction_hash=str(tx_hash),
            source=source,
            destination=destination,
            amount=amount,
        )

    async def close(self) -> None:
        for client in (self._horizon, self._signer):
            if client is not None:
                await client.aclose()
        self._horizon = None
        self._signer = None
