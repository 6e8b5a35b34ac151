from __future__ import annotations

import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Protocol
from urllib.parse import quote

from requests import get

from smartpdv.config import get_status_timeout, get_status_token, get_status_url
from smartpdv.models.pix import PaymentStatus
from smartpdv.services.exceptions import PaymentStatusError

logger = logging.getLogger(__name__)

_COMPLETED = frozenset({"completed", "paid", "concluida"})
_PENDING = frozenset({"pending", "ativa", "processing"})


class PaymentStatusProvider(Protocol):
    def check_status(self, transaction_id: str) -> PaymentStatus: ...


def check_payment_status(transaction_id: str, provider: PaymentStatusProvider) -> PaymentStatus:
    """Ask *provider* once for the state of *transaction_id*.

    No polling or retry here; timeouts belong to the provider.
    """
    if not transaction_id or not transaction_id.strip():
        raise ValueError("transaction_id vazio")
    return provider.check_status(transaction_id)


def _parse_amount(raw: object) -> Decimal | None:
    if raw is None:
        return None
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        raise PaymentStatusError(f"Valor invalido na resposta: {raw!r}") from None


def _parse_settled_at(raw: object) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw))
    except ValueError:
        raise PaymentStatusError(f"Data de liquidacao invalida na resposta: {raw!r}") from None


def parse_status_response(data: dict) -> PaymentStatus:
    """Map a status-endpoint JSON body onto PaymentStatus."""
    raw_status = str(data.get("status", "")).lower()
    if raw_status in _COMPLETED:
        status = "completed"
    elif raw_status in _PENDING:
        status = "pending"
    else:
        status = "failed"
    return PaymentStatus(
        status=status,
        amount=_parse_amount(data.get("amount", data.get("valor"))),
        settled_at=_parse_settled_at(data.get("settledAt", data.get("horario"))),
    )


class HttpPaymentStatusProvider:
    """Single GET per check against ``{base_url}/{transaction_id}``."""

    def __init__(self, base_url: str, token: str | None = None, timeout: float | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else get_status_timeout()

    def check_status(self, transaction_id: str) -> PaymentStatus:
        url = f"{self.base_url}/{quote(transaction_id, safe='')}"
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug("GET %s (timeout=%ss)", url, self.timeout)
        resp = get(url, headers=headers, timeout=self.timeout)

        if not resp.ok:
            body = resp.text[:500] if resp.text else ""
            logger.warning("Status endpoint returned %s for %s", resp.status_code, transaction_id)
            raise PaymentStatusError(
                f"Erro na consulta de pagamento ({resp.status_code}): {body}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError:
            raise PaymentStatusError("Resposta de status nao e JSON", status_code=resp.status_code) from None
        if not isinstance(data, dict):
            raise PaymentStatusError("Resposta de status inesperada", status_code=resp.status_code)
        return parse_status_response(data)


class SandboxStatusProvider:
    """In-memory status source for development and tests.

    Unknown transactions report as pending.
    """

    def __init__(self) -> None:
        self._payments: dict[str, PaymentStatus] = {}

    def register(self, transaction_id: str) -> None:
        self._payments.setdefault(transaction_id, PaymentStatus(status="pending"))

    def confirm(self, transaction_id: str, amount: Decimal, settled_at: datetime | None = None) -> bool:
        """Mark a pending payment as paid. Returns False if it is no longer pending."""
        if self._payments.get(transaction_id, PaymentStatus("pending")).status != "pending":
            return False
        self._payments[transaction_id] = PaymentStatus(
            status="completed",
            amount=amount,
            settled_at=settled_at or datetime.now(UTC),
        )
        return True

    def cancel(self, transaction_id: str) -> bool:
        """Mark a pending payment as failed. Returns False if it is no longer pending."""
        if self._payments.get(transaction_id, PaymentStatus("pending")).status != "pending":
            return False
        self._payments[transaction_id] = PaymentStatus(status="failed")
        return True

    def check_status(self, transaction_id: str) -> PaymentStatus:
        return self._payments.get(transaction_id, PaymentStatus(status="pending"))


def provider_from_config() -> PaymentStatusProvider:
    """HTTP provider when PIX_STATUS_URL is set, otherwise the sandbox."""
    url = get_status_url()
    if url is None:
        logger.debug("PIX_STATUS_URL not set, using sandbox status provider")
        return SandboxStatusProvider()
    return HttpPaymentStatusProvider(url, token=get_status_token())
