"""
유틸리티 함수
=============

헤더 정규화, 값 추출, 숫자/날짜 변환, ID 생성 등 공통 유틸리티 함수를 제공합니다.
"""

from __future__ import annotations

import getpass
import logging
import re
import uuid
from datetime import date, datetime
from typing import Any, Iterable, Mapping

import pandas as pd

from order_tools import config
from order_tools.config import COLUMN_ALIASES, KEY_SEPARATOR

logger = logging.getLogger(__name__)


def clean_header(header: Any) -> str:
    """헤더 문자열 정규화 (앞뒤 공백 제거, 줄바꿈 → 공백)"""
    if header is None:
        return ''
    return str(header).replace('\r\n', ' ').replace('\n', ' ').strip()


def is_blank(value: Any) -> bool:
    """빈 셀 여부 (None, NaN, 공백 문자열)"""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == '' or value.strip().lower() == 'nan'
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_key_string(value: Any) -> str:
    """비교용 키 문자열 변환

    시트에서 숫자로 읽힌 PO 번호(예: 1234.0)도 '1234'로 맞춰 비교합니다.
    """
    if is_blank(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def resolve_column(
    columns: Iterable[str],
    key: str,
) -> str | None:
    """별칭에서 실제 컬럼명 찾기

    Args:
        columns: 헤더 목록 (시트 헤더 또는 레코드 키)
        key: 표준 헤더명 또는 실제 컬럼명

    Returns:
        실제 컬럼명 또는 None (찾지 못한 경우)
    """
    columns = [c for c in columns if c]

    # 1. key가 이미 실제 컬럼명인 경우
    if key in columns:
        return key

    # 2. 별칭에서 찾기
    aliases = COLUMN_ALIASES.get(key)
    if aliases:
        for alias in aliases:
            if alias in columns:
                return alias

    # 3. 대소문자 무시 검색 (fallback)
    key_lower = key.lower()
    for col in columns:
        if col.lower() == key_lower:
            return col

    return None


def get_value(
    record: Mapping[str, Any],
    key: str,
    default: Any = '',
) -> Any:
    """레코드에서 값 가져오기 (별칭 지원, 빈 값은 기본값)

    Args:
        record: 레코드 dict (read_all_records 결과) 또는 pandas Series
        key: 표준 헤더명 또는 실제 컬럼명
        default: 기본값 (값이 없거나 비어있는 경우)

    Returns:
        해당 키의 값 또는 기본값
    """
    actual_col = resolve_column(record.keys(), key)
    if actual_col is None:
        return default

    value = record.get(actual_col, default)
    if is_blank(value):
        return default
    return value


def get_str(record: Mapping[str, Any], key: str) -> str:
    """레코드에서 문자열 키 값 가져오기 (trim)"""
    return to_key_string(get_value(record, key, ''))


def parse_int(value: Any, default: int = 0) -> int:
    """정수 변환 (실패 시 기본값)"""
    if is_blank(value):
        return default
    try:
        return int(float(str(value).replace(',', '').strip()))
    except (ValueError, TypeError):
        logger.debug(f"정수 변환 실패: {value!r}")
        return default


def parse_float(value: Any, default: float = 0.0) -> float:
    """실수 변환 (통화 기호/쉼표 허용, 실패 시 기본값)"""
    if is_blank(value):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace('$', '').replace(',', '').strip())
    except ValueError:
        logger.debug(f"실수 변환 실패: {value!r}")
        return default


def format_date(value: Any, fmt: str = '%Y-%m-%d') -> str:
    """날짜 값을 문자열로 변환 (빈 값이면 빈 문자열)"""
    if is_blank(value):
        return ''
    if isinstance(value, (datetime, date)):
        return value.strftime(fmt)
    try:
        return pd.to_datetime(value).strftime(fmt)
    except (ValueError, TypeError):
        return str(value)


def parse_date(value: Any) -> datetime | None:
    """문자열/날짜 값을 datetime으로 변환 (실패 시 None)"""
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return pd.to_datetime(value).to_pydatetime()
    except (ValueError, TypeError):
        logger.warning(f"날짜 형식을 확인하세요: {value}")
        return None


def sanitize_filename(name: str) -> str:
    r"""파일명에 사용할 수 없는 문자 제거

    Windows 파일명 금지 문자(\ / : * ? " < > |)를 제거하고
    연속 공백/언더스코어를 정리합니다.
    """
    sanitized = re.sub(r'[\\/:*?"<>|]', '_', str(name))
    sanitized = re.sub(r'[_\s]+', '_', sanitized)
    return sanitized.strip('_')


def split_po_sku_key(key: str) -> tuple[str, str]:
    """'PO|SKU' 키를 (PO, SKU)로 분리 (SKU는 마지막 구간)"""
    key = str(key)
    if KEY_SEPARATOR not in key:
        return key, ''
    po, _, sku = key.rpartition(KEY_SEPARATOR)
    return po, sku


def split_list(value: Any) -> list[str]:
    """쉼표로 구분된 셀 값을 리스트로 분리 (빈 항목 제외)"""
    if is_blank(value):
        return []
    return [item.strip() for item in str(value).split(',') if item.strip()]


def get_current_user() -> str:
    """현재 사용자 식별자 (user_settings.USER_EMAIL 우선, 없으면 OS 사용자)"""
    if config.USER_EMAIL:
        return config.USER_EMAIL
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return 'unknown'


def now_millis() -> int:
    """현재 시각 (epoch 밀리초)"""
    return int(datetime.now().timestamp() * 1000)


def generate_timestamped_id() -> str:
    """시간순 정렬 가능한 고유 ID 생성: <epoch 밀리초>_<uuid 앞 8자리>"""
    return f"{now_millis()}_{uuid.uuid4().hex[:8]}"


def generate_manual_po_number() -> str:
    """수동 PO 번호 생성 (예: POM3FA1)"""
    random_part = uuid.uuid4().hex[:config.MANUAL_PO_RANDOM_LENGTH].upper()
    return f"{config.MANUAL_PO_PREFIX}{random_part}"
