"""
ロギング設定モジュール

チャット本文がログに残るため、ファイル出力は設定で無効にできます。
requests が内部で使う urllib3 の接続ログは WARNING 以上に抑えます。
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
NOISY_LOGGERS: Tuple[str, ...] = ("urllib3",)


def setup_logger(
    log_level: str = "INFO", log_file: Optional[str] = "logs/yol_dostu.log"
) -> None:
    """
    ロガーのセットアップ

    Args:
        log_level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: ログファイルのパス。None または空文字なら標準エラーのみ

    Raises:
        ValueError: 不明なログレベルの場合
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
