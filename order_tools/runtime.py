"""
런타임 서비스
=============

스크립트 실행 환경이 제공하던 공용 서비스를 프로세스 내부 객체로 제공합니다.

- PropertyStore: 큐 상태 등 영속 키/값 (JSON 파일)
- TTLCache: 조회 결과 임시 캐시 (만료 시간 지원)
- FileTTLCache: 실행 간 유지되는 수정 payload 캐시 (JSON 파일)
- ScriptLock: 큐 처리 상호 배제 락
- TriggerRegistry: 이름 기반 1회성 지연 실행 타이머
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable

from order_tools import config

logger = logging.getLogger(__name__)


def _read_json_dict(path: Path) -> dict[str, Any]:
    """JSON 객체 파일 읽기 (없거나 손상되면 빈 dict)"""
    if not path.exists():
        return {}
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"JSON 파일 손상 ({path.name}): {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _write_json_dict(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


class PropertyStore:
    """JSON 파일에 저장되는 문자열 키/값 저장소"""

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else config.PROPERTIES_FILE
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        return _read_json_dict(self.path)

    def _dump(self, data: dict[str, str]) -> None:
        _write_json_dict(self.path, data)

    def get_property(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def set_property(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._dump(data)

    def delete_property(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._dump(data)


class TTLCache:
    """만료 시간이 있는 메모리 캐시

    만료된 항목은 조회 시 없는 것으로 취급되고 제거됩니다.
    """

    def __init__(self, default_ttl: int = config.LIST_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        with self._lock:
            self._entries[key] = (expires_at, value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_json(self, key: str) -> Any:
        """JSON 문자열로 저장된 값을 역직렬화해서 반환 (없으면 None)"""
        raw = self.get(key)
        return json.loads(raw) if raw is not None else None

    def put_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        self.put(key, json.dumps(value, ensure_ascii=False, default=str), ttl)



class FileTTLCache(TTLCache):
    """JSON 파일에 저장되는 만료 캐시

    CLI 실행이 끝나도 남아 있어야 하는 값(PO 수정 payload)에 사용합니다.
    만료 시각은 벽시계(time.time) 기준으로 기록합니다.
    """

    def __init__(self, path: Path | None = None,
                 default_ttl: int = config.PAYLOAD_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        super().__init__(default_ttl, clock)
        self.path = Path(path) if path else config.USER_CACHE_FILE

    def get(self, key: str) -> str | None:
        with self._lock:
            data = _read_json_dict(self.path)
            entry = data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del data[key]
                _write_json_dict(self.path, data)
                return None
            return value

    def put(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        with self._lock:
            data = _read_json_dict(self.path)
            # 만료된 항목 정리
            now = self._clock()
            data = {k: v for k, v in data.items() if v[0] > now}
            data[key] = [expires_at, value]
            _write_json_dict(self.path, data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = _read_json_dict(self.path)
            if data.pop(key, None) is not None:
                _write_json_dict(self.path, data)

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                _write_json_dict(self.path, {})


class ScriptLock:
    """큐 처리용 상호 배제 락"""

    def __init__(self):
        self._lock = threading.Lock()

    def try_lock(self, timeout: float = config.LOCK_TIMEOUT_SECONDS) -> bool:
        """timeout(초) 동안 락 획득 시도"""
        return self._lock.acquire(timeout=timeout)

    def release_lock(self) -> None:
        if self._lock.locked():
            self._lock.release()


class TriggerRegistry:
    """핸들러 이름별 1회성 지연 실행 타이머 관리"""

    def __init__(self):
        self._timers: dict[str, list[threading.Timer]] = {}
        self._lock = threading.Lock()

    def has_trigger(self, handler: str) -> bool:
        with self._lock:
            timers = [t for t in self._timers.get(handler, []) if t.is_alive()]
            self._timers[handler] = timers
            return bool(timers)

    def create_after(self, handler: str, delay_seconds: float, callback: Callable[[], Any]) -> threading.Timer:
        """delay_seconds 후 callback을 한 번 실행하는 트리거 생성"""
        timer = threading.Timer(delay_seconds, callback)
        timer.name = f"trigger-{handler}"
        timer.daemon = True
        with self._lock:
            self._timers.setdefault(handler, []).append(timer)
        timer.start()
        logger.debug(f"트리거 생성: {handler} ({delay_seconds}초 후)")
        return timer

    def delete_triggers(self, handler: str) -> int:
        """핸들러의 대기 중인 트리거 모두 취소

        Returns:
            취소된 트리거 수
        """
        with self._lock:
            timers = self._timers.pop(handler, [])
        current = threading.current_thread()
        count = 0
        for timer in timers:
            # 실행 중인 자기 자신은 취소 대상이 아님
            if timer is current:
                continue
            timer.cancel()
            count += 1
        if count:
            logger.debug(f"트리거 삭제: {handler} ({count}건)")
        return count


# === 프로세스 공용 인스턴스 ===
_script_properties: PropertyStore | None = None
_script_cache = TTLCache()
_user_cache: FileTTLCache | None = None
_script_lock = ScriptLock()
_triggers = TriggerRegistry()


def get_script_properties() -> PropertyStore:
    global _script_properties
    if _script_properties is None or _script_properties.path != config.PROPERTIES_FILE:
        _script_properties = PropertyStore(config.PROPERTIES_FILE)
    return _script_properties


def get_script_cache() -> TTLCache:
    return _script_cache


def get_user_cache() -> FileTTLCache:
    """사용자 캐시 (실행 간 유지되는 파일 캐시)"""
    global _user_cache
    if _user_cache is None or _user_cache.path != config.USER_CACHE_FILE:
        _user_cache = FileTTLCache(config.USER_CACHE_FILE)
    return _user_cache


def get_script_lock() -> ScriptLock:
    return _script_lock


def get_trigger_registry() -> TriggerRegistry:
    return _triggers
