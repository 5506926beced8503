"""
CLI 공통 유틸리티
==================

manage_po.py와 ship_orders.py에서 공유하는 함수들
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Iterable

from order_tools.config import LIST_DISPLAY_LIMIT, MSG_ERROR, MSG_NOTICE, MSG_WARNING
from order_tools.results import ToolResult
from order_tools.sheet_service import SheetService


def print_list(title: str, items: Iterable[Any], limit: int = LIST_DISPLAY_LIMIT) -> None:
    """목록 출력 (limit 초과분은 건수만 표시)

    Args:
        title: 목록 제목
        items: 출력할 항목 (dict이면 'display' 또는 'key' 사용)
        limit: 출력 제한 수 (기본값: LIST_DISPLAY_LIMIT)
    """
    items = list(items)
    print(f"\n{title} ({len(items)}건):")
    if not items:
        print("  (없음)")
        return
    for item in items[:limit]:
        if isinstance(item, dict):
            item = item.get('display') or item.get('key') or item
        print(f"  - {item}")
    if len(items) > limit:
        print(f"  ... 외 {len(items) - limit}건")


def print_result(result: ToolResult) -> int:
    """처리 결과 출력

    Returns:
        종료 코드 (0: 성공, 1: 실패)
    """
    for warn in result.warnings:
        print(f"  {MSG_NOTICE} {warn}")

    if result.success:
        print(f"  -> {result.message}")
        return 0

    if len(result.errors) > 1:
        for err in result.errors:
            print(f"  {MSG_ERROR} {err}")
    else:
        print(f"  {MSG_ERROR} {result.message}")
    return 1


def open_store(workbook: str | None = None) -> SheetService | None:
    """워크북 열기 (파일이 없으면 오류 출력 후 None)"""
    store = SheetService(Path(workbook) if workbook else None)
    try:
        store.workbook
    except FileNotFoundError as e:
        print(f"{MSG_ERROR} {e}", file=sys.stderr)
        print(f"{MSG_WARNING} 'python manage_po.py init'으로 새 워크북을 만들 수 있습니다.", file=sys.stderr)
        return None
    return store
