"""Exchangeのカスタム例外定義

リモートのチャットエンドポイントとのやり取りで発生するエラー。
ExchangeController がこれらを捕捉し、エラーメッセージに変換します。
"""


class ExchangeError(Exception):
    """Exchange基底例外"""

    pass


class ExchangeTransportError(ExchangeError):
    """接続失敗・タイムアウトなどの通信エラー"""

    pass


class ExchangeHTTPError(ExchangeError):
    """成功以外のHTTPステータス"""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}")


class InvalidResponseError(ExchangeError):
    """レスポンス形式が不正（status不一致、本文なし、JSONでない等）"""

    pass
