"""
로깅 설정 모듈
==============

manage_po.py, ship_orders.py 공용 로깅 설정입니다.
큐 처리는 타이머 스레드에서 실행되므로 필요하면 파일 로그를 함께 남깁니다.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

CONSOLE_FORMAT = '%(message)s'
VERBOSE_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s'


def setup_logging(verbose: bool = False, log_file: Path | str | None = None) -> None:
    """로깅 설정

    print()는 사용자 출력(목록, 처리 결과)에 사용하고,
    logging은 오류 추적, 큐 처리 상황, 디버그 메시지에 사용합니다.

    Args:
        verbose: True면 DEBUG, False면 INFO
        log_file: 로그 파일 경로 (지정 시 DEBUG 레벨로 함께 기록)
    """
    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if verbose:
        console_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT, datefmt='%H:%M:%S'))
    else:
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)

    root_logger.setLevel(logging.DEBUG if log_file else level)
    logging.getLogger('order_tools').setLevel(logging.DEBUG if log_file else level)

    # webhook 호출 시 연결 로그는 verbose에서만
    logging.getLogger('urllib3').setLevel(logging.DEBUG if verbose else logging.WARNING)

    logging.debug(f"로깅 설정 완료 (verbose={verbose}, log_file={log_file})")
