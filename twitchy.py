"""
twitchy - Twitch ライブ配信検索スクリプト

目的:
- Twitch Helix の検索APIで「science & technology」のライブ配信を全件取得
- タイトルに「rust」を含む配信だけを抽出
- 言語・チャンネルURL・タイトルを1行ずつ標準出力に表示

使用方法:
1. 環境変数 TWITCHY_CLIENT_ID と TWITCHY_TOKEN を設定
2. スクリプトを実行 (python twitchy.py または twitchy)

終了コード:
- 0: 正常終了（data フィールドが無いページで終わった場合も含む）
- 1: 認証情報なし / 通信・JSONエラー / 不正なレコード
"""

import os
import sys
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import requests

# ============================================================
# 設定
# ============================================================

# 検索API（キーワード・ライブ配信のみ・1ページ100件は固定）
ROOT_URL = (
    "https://api.twitch.tv/helix/search/channels"
    "?query=science%20%26%20technology&live_only=true&first=100"
)

# タイトルに含まれていれば表示する（大文字小文字は区別しない）
KEYWORD = "rust"

# 出力用のチャンネルURL
CHANNEL_URL_TEMPLATE = "https://twitch.tv/{}"
CHANNEL_FIELD_WIDTH = 20

# 認証情報の環境変数名
ENV_CLIENT_ID = "TWITCHY_CLIENT_ID"
ENV_TOKEN = "TWITCHY_TOKEN"

# リクエストのタイムアウト（秒）
REQUEST_TIMEOUT = 30

# APIのキー -> StreamEntry の属性
FIELD_MAP = {
    "broadcaster_language": "language",
    "display_name": "display_name",
    "title": "title",
    "game_id": "category_id",
}


# ============================================================
# 例外
# ============================================================

class TwitchyError(Exception):
    """プロセスを終了させるエラーの基底クラス"""

    exit_code = 1


class CredentialError(TwitchyError):
    """環境変数に認証情報がない"""


class FetchError(TwitchyError):
    """通信エラー、またはレスポンスがJSONではない"""


class FieldError(TwitchyError):
    """検索結果のオブジェクトに必要なフィールドがない"""


class EndOfResults(Exception):
    """data フィールドがない（検索結果の終わりとして扱う）"""


# ============================================================
# データクラス
# ============================================================

@dataclass(frozen=True)
class StreamEntry:
    """検索結果1件分の配信データ"""
    language: str
    display_name: str
    title: str
    category_id: str


# ============================================================
# API関数
# ============================================================

def resolve_credentials() -> Tuple[str, str]:
    """環境変数から (client_id, token) を取得"""
    client_id = os.environ.get(ENV_CLIENT_ID)
    if client_id is None:
        raise CredentialError("Client id missing")

    token = os.environ.get(ENV_TOKEN)
    if token is None:
        raise CredentialError("OAuth token missing")

    return client_id, token


def build_url(cursor: Optional[str] = None) -> str:
    if cursor is None:
        return ROOT_URL
    return f"{ROOT_URL}&after={cursor}"


def build_headers(client_id: str, token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Client-Id": client_id,
    }


def extract_cursor(payload) -> Optional[str]:
    """pagination.cursor を取り出す。どの階層が欠けていても None"""
    if not isinstance(payload, dict):
        return None
    pagination = payload.get("pagination")
    if not isinstance(pagination, dict):
        return None
    cursor = pagination.get("cursor")
    if not isinstance(cursor, str):
        return None
    return cursor


def get_required_string_field(obj: Dict, key: str) -> str:
    """文字列フィールドを取得。ない・文字列でない場合は FieldError"""
    if key not in obj:
        raise FieldError(f"missing field '{key}'")
    value = obj[key]
    if not isinstance(value, str):
        raise FieldError(
            f"field '{key}' is not a string (got {type(value).__name__})"
        )
    return value


def to_record(raw: Dict) -> StreamEntry:
    """APIの検索結果オブジェクトを StreamEntry に変換（値はそのまま）"""
    if not isinstance(raw, dict):
        raise FieldError(f"result is not an object (got {type(raw).__name__})")

    values = {
        attr: get_required_string_field(raw, key) for key, attr in FIELD_MAP.items()
    }
    return StreamEntry(**values)


def fetch_page(
    cursor: Optional[str] = None, session=None
) -> Tuple[List[StreamEntry], Optional[str]]:
    """
    検索APIを1回呼び出し、(レコード一覧, 次のカーソル) を返す。

    data が無い、または配列でない場合は EndOfResults を送出する。
    ページ内のレコードは全件変換してから返すため、
    1件でも不正なら何も表示せずに FieldError になる。
    """
    client_id, token = resolve_credentials()
    http = session or requests

    try:
        response = http.get(
            build_url(cursor),
            headers=build_headers(client_id, token),
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise FetchError(f"request failed: {e}") from e

    if response.status_code != 200:
        print(f"HTTP {response.status_code}", file=sys.stderr)

    try:
        payload = response.json()
    except ValueError as e:
        raise FetchError(f"failed to serialize json: {e}") from e

    next_cursor = extract_cursor(payload)

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise EndOfResults()

    return [to_record(raw) for raw in data], next_cursor


# ============================================================
# フィルタ・出力
# ============================================================

def keep(entry: StreamEntry) -> bool:
    return KEYWORD in entry.title.lower()


def format_entry(entry: StreamEntry) -> str:
    # 幅揃えはチャンネル名部分のみ
    channel = CHANNEL_URL_TEMPLATE.format(
        f"{entry.display_name:<{CHANNEL_FIELD_WIDTH}}"
    )
    return f"{entry.language} | {channel} | {entry.title}"


def print_entry(entry: StreamEntry):
    print(format_entry(entry))


# ============================================================
# 収集ロジック
# ============================================================

Fetcher = Callable[[Optional[str]], Tuple[List[StreamEntry], Optional[str]]]


def iter_pages(fetch: Fetcher = fetch_page) -> Iterator[List[StreamEntry]]:
    """カーソルがなくなるまでページを順に取得する"""
    cursor = None
    seen = set()

    while True:
        entries, cursor = fetch(cursor)
        yield entries

        if cursor is None:
            break

        # 同じカーソルが返ってきたら無限ループになるので打ち切る
        if cursor in seen:
            print("cursor repeated, stopping", file=sys.stderr)
            break
        seen.add(cursor)


def run(fetch: Fetcher = fetch_page) -> int:
    """検索を実行し、終了コードを返す"""
    print("Searching...")

    try:
        for entries in iter_pages(fetch):
            for entry in filter(keep, entries):
                print_entry(entry)
    except EndOfResults:
        return 0
    except TwitchyError as e:
        print(e, file=sys.stderr)
        return e.exit_code

    print("Done...")
    return 0


# ============================================================
# メイン
# ============================================================

def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
