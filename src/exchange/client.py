"""HTTP client for the Yol Dostu chat endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List

import requests
from pydantic import ValidationError

from .exceptions import (
    ExchangeHTTPError,
    ExchangeTransportError,
    InvalidResponseError,
)
from .schemas import ContextMessage, ExchangeRequest, ExchangeResponse

logger = logging.getLogger(__name__)

CHAT_PATH = "/yoldostu/chat"


class YolDostuClient:
    """
    Yol DostuのAPIクライアント

    1回のリクエストで、ユーザーの発言と直近の会話履歴を送信し、
    応答テキストを受け取ります。
    """

    def __init__(self, base_url: str, token: str, timeout: float = 30.0):
        """
        Args:
            base_url: APIサーバーURL
            token: Bearer認証トークン
            timeout: リクエストのタイムアウト秒数
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{CHAT_PATH}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def send(self, message: str, history: List[Dict[str, str]]) -> str:
        """
        メッセージを送信して応答テキストを返す

        Args:
            message: 送信するテキスト（trim済み）
            history: 会話履歴 [{"role": "user", "content": "..."}]

        Returns:
            応答テキスト

        Raises:
            ExchangeTransportError: 通信エラー・タイムアウト
            ExchangeHTTPError: 成功以外のHTTPステータス
            InvalidResponseError: 応答の形式が不正
        """
        try:
            payload = ExchangeRequest(
                message=message,
                conversation_history=[ContextMessage(**item) for item in history],
            )
        except ValidationError as e:
            raise InvalidResponseError(f"Invalid request payload: {e}") from e

        try:
            response = requests.post(
                self.endpoint,
                headers=self._headers(),
                json=payload.model_dump(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Chat request failed: {e}")
            raise ExchangeTransportError(str(e)) from e

        if not response.ok:
            logger.error(f"Chat request returned HTTP {response.status_code}")
            raise ExchangeHTTPError(response.status_code, response.reason or "")

        try:
            body = ExchangeResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise InvalidResponseError(f"Malformed response body: {e}") from e

        reply = body.reply_text
        if reply is None:
            raise InvalidResponseError("Invalid response format")
        return reply

    async def send_async(self, message: str, history: List[Dict[str, str]]) -> str:
        """send() をスレッドで実行するコルーチン版"""
        return await asyncio.to_thread(self.send, message, history)
