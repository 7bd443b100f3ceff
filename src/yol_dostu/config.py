"""
設定管理モジュール

関連クラス:
  - app.build_coordinator: この設定からコンポーネントを組み立てる
  - exchange.client.YolDostuClient: API設定を使用
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class ApiConfig:
    """Yol Dostu API設定"""

    base_url: str = "https://background-xmocz.ondigitalocean.app"
    token: str = ""
    timeout_seconds: float = 30.0


@dataclass
class StorageConfig:
    """ストレージ設定"""

    db_path: Optional[str] = None  # 省略時は data/yol_dostu.db
    evict_orphans: bool = True


@dataclass
class ChatConfig:
    """チャット動作設定"""

    context_window: int = 6
    history_limit: int = 50
    max_display_attempts: int = 3


@dataclass
class Config:
    """アプリケーション設定クラス"""

    api: ApiConfig = None  # type: ignore
    storage: StorageConfig = None  # type: ignore
    chat: ChatConfig = None  # type: ignore

    # ログ設定
    log_level: str = "INFO"
    log_file: str = "logs/yol_dostu.log"

    def __post_init__(self):
        """デフォルト値の初期化"""
        if self.api is None:
            self.api = ApiConfig()
        if self.storage is None:
            self.storage = StorageConfig()
        if self.chat is None:
            self.chat = ChatConfig()

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Config":
        """YAMLファイルから設定を読み込む

        トークンはYAMLに書かず、環境変数 YOL_DOSTU_API_TOKEN で上書きできます。

        Args:
            config_path: 設定ファイルパス（省略時はconfig/app_config.yamlを使用）

        Returns:
            Config: 設定インスタンス
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "app_config.yaml"

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data: Dict[str, Any] = yaml.safe_load(f) or {}

        api_data = yaml_data.get("api", {})
        storage_data = yaml_data.get("storage", {})
        chat_data = yaml_data.get("chat", {})
        log_data = yaml_data.get("log", {})

        return cls(
            api=ApiConfig(
                base_url=api_data.get("base_url", ApiConfig.base_url),
                token=os.getenv("YOL_DOSTU_API_TOKEN", api_data.get("token", "")),
                timeout_seconds=float(api_data.get("timeout_seconds", 30.0)),
            ),
            storage=StorageConfig(
                db_path=storage_data.get("db_path"),
                evict_orphans=bool(storage_data.get("evict_orphans", True)),
            ),
            chat=ChatConfig(
                context_window=int(chat_data.get("context_window", 6)),
                history_limit=int(chat_data.get("history_limit", 50)),
                max_display_attempts=int(chat_data.get("max_display_attempts", 3)),
            ),
            log_level=log_data.get("level", "INFO"),
            log_file=log_data.get("file", "logs/yol_dostu.log"),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """環境変数から設定を読み込む"""
        return cls(
            api=ApiConfig(
                base_url=os.getenv("YOL_DOSTU_API_URL", ApiConfig.base_url),
                token=os.getenv("YOL_DOSTU_API_TOKEN", ""),
                timeout_seconds=float(os.getenv("YOL_DOSTU_API_TIMEOUT", "30")),
            ),
            storage=StorageConfig(
                db_path=os.getenv("YOL_DOSTU_DB_PATH"),
                evict_orphans=os.getenv("YOL_DOSTU_EVICT_ORPHANS", "1") != "0",
            ),
            chat=ChatConfig(
                context_window=int(os.getenv("YOL_DOSTU_CONTEXT_WINDOW", "6")),
                history_limit=int(os.getenv("YOL_DOSTU_HISTORY_LIMIT", "50")),
                max_display_attempts=int(os.getenv("YOL_DOSTU_MAX_ATTEMPTS", "3")),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/yol_dostu.log"),
        )
