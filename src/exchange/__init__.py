"""Message exchange with the remote Yol Dostu assistant."""

from .client import YolDostuClient
from .controller import (
    ERROR_MESSAGE,
    Done,
    ExchangeController,
    ExchangeOutcome,
    ExchangeState,
    Idle,
    PendingExchange,
    Sending,
    build_context,
)
from .exceptions import (
    ExchangeError,
    ExchangeHTTPError,
    ExchangeTransportError,
    InvalidResponseError,
)

__all__ = [
    "YolDostuClient",
    "ERROR_MESSAGE",
    "Done",
    "ExchangeController",
    "ExchangeOutcome",
    "ExchangeState",
    "Idle",
    "PendingExchange",
    "Sending",
    "build_context",
    "ExchangeError",
    "ExchangeHTTPError",
    "ExchangeTransportError",
    "InvalidResponseError",
]
