#!/usr/bin/env python3
"""
CUI版Yol Dostuチャットインターフェース

標準入出力ベースのシンプルな表示層として SessionCoordinator を操作します。

使用例:
    uv run python scripts/cui_chat.py
    uv run python scripts/cui_chat.py --db-path /tmp/yol_dostu.db --log-level DEBUG

チャット中のコマンド:
    new            新しいチャットを開始
    retry          最後のメッセージを再送信
    history        チャット履歴を表示
    search <語>    チャット履歴を検索
    load <id>      履歴のチャットを開く
    delete <id>    チャットを削除
    exit / quit    終了
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# プロジェクトルートをパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.chat_history import ChatSession
from src.session import OperationResult, SessionCoordinator
from src.yol_dostu import Config, build_coordinator, setup_logger
from src.yol_dostu.formatting import format_summary


def parse_args():
    """コマンドライン引数をパース"""
    parser = argparse.ArgumentParser(
        description="CUI版Yol Dostuチャットインターフェース",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="設定ファイルのパス（デフォルト: config/app_config.yaml）",
    )

    parser.add_argument(
        "--db-path",
        type=str,
        default=None,
        help="SQLiteデータベースファイルのパス",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="ログレベル（デフォルト: 設定ファイルの値）",
    )

    return parser.parse_args()


def print_banner():
    """起動バナーを表示"""
    print("=" * 60)
    print("Yol Dostu (CUI)")
    print("=" * 60)
    print("終了するには 'exit', 'quit', または Ctrl+D を入力してください。")
    print("コマンド: new / retry / history / search <語> / load <id> / delete <id>")
    print("=" * 60)
    print()


def print_messages(result: OperationResult) -> None:
    """現在のメッセージを表示"""
    state = result.state
    print(f"--- {state.title} ({state.active_session_id}) ---")
    for message in state.messages:
        prefix = "You" if message.role.value == "user" else "Bot"
        marker = " [!]" if message.is_error else ""
        print(f"{prefix}{marker}: {message.content}")
    print()


def print_history(sessions: list[ChatSession]) -> None:
    if not sessions:
        print("Hələ heç bir söhbət yoxdur.\n")
        return
    for session in sessions:
        print(f"[{session.id}] {format_summary(session.to_summary())}")
    print()


def print_reply(coordinator: SessionCoordinator, result: OperationResult) -> None:
    """送信結果の最後のメッセージを表示"""
    if not result.state.messages:
        return
    last = result.state.messages[-1]
    if last.is_error:
        label = coordinator.attempt_label or ""
        print(f"Bot [!]: {last.content} {label}".rstrip())
        print("('retry' で再送信できます)\n")
    elif result.ok:
        print(f"Bot: {last.content}\n")


async def handle_command(coordinator: SessionCoordinator, user_input: str) -> bool:
    """チャット内コマンドを処理。処理した場合True。"""
    command, _, argument = user_input.partition(" ")
    command = command.lower()
    argument = argument.strip()

    if command == "new":
        print_messages(await coordinator.start_new_session())
    elif command == "retry":
        result = await coordinator.retry_last()
        if result.ok or result.error:
            print_reply(coordinator, result)
        else:
            print("Yenidən göndəriləcək mesaj yoxdur.\n")
    elif command == "history":
        print_history(await coordinator.list_history())
    elif command == "search" and argument:
        print_history(await coordinator.search_history(argument))
    elif command == "load" and argument:
        result = await coordinator.load_session(argument)
        if result.ok:
            print_messages(result)
        else:
            print(f"Söhbət tapılmadı: {argument}\n")
    elif command == "delete" and argument:
        await coordinator.delete_session(argument)
        print(f"Silindi: {argument}\n")
        if coordinator.state.active_session_id is None:
            print_messages(await coordinator.initialize())
    else:
        return False
    return True


async def run(args) -> None:
    config = Config.from_yaml(Path(args.config) if args.config else None)
    if args.db_path:
        config.storage.db_path = args.db_path
    if args.log_level:
        config.log_level = args.log_level

    setup_logger(log_level=config.log_level, log_file=config.log_file)
    logger = logging.getLogger(__name__)

    coordinator = build_coordinator(config)
    result = await coordinator.initialize()
    if not result.ok:
        print("エラー: チャットの初期化に失敗しました")
        sys.exit(1)

    print_banner()
    print_messages(result)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "You: ")).strip()

            if user_input.lower() in ["exit", "quit", "q"]:
                print("Yol Dostuを終了します。")
                break

            if not user_input:
                continue

            # 画面に戻ったときと同じく、他の画面での切り替えを反映
            refreshed = await coordinator.on_foreground_refresh()
            if refreshed.ok:
                print_messages(refreshed)

            if await handle_command(coordinator, user_input):
                continue

            result = await coordinator.send_message(user_input)
            print_reply(coordinator, result)

        except EOFError:
            print("\nYol Dostuを終了します。")
            break
        except KeyboardInterrupt:
            print("\n\nYol Dostuを終了します。")
            break
        except Exception as e:
            logger.error(f"エラーが発生しました: {e}", exc_info=True)
            print(f"エラー: {e}\n")


def main():
    """メイン処理"""
    args = parse_args()
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
