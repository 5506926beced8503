"""
작업 큐
=======

스크립트 속성(PropertyStore)에 JSON 목록으로 영속화되는 단순 작업 큐입니다.

처리 흐름:
    enqueue → 속성 저장 → (큐가 비어 있었으면) 즉시 처리
    process_next → 락 획득 → 1건 꺼내 처리 → 남은 작업이 있으면 지연 트리거 재등록

작업은 핸들러 실행이 끝난 뒤에야 큐에서 제거되므로 최소 1회 실행이 보장됩니다.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable

from order_tools import config
from order_tools.runtime import (
    PropertyStore,
    ScriptLock,
    TriggerRegistry,
    get_script_lock,
    get_script_properties,
    get_trigger_registry,
)

logger = logging.getLogger(__name__)

Task = dict[str, Any]

# 큐 목록 읽기-수정-쓰기 구간 보호 (핸들러 실행 중에는 잡지 않음)
_queue_state_lock = threading.Lock()


class TaskQueue:
    """영속 작업 큐

    Args:
        key: 큐를 저장할 속성 키
        handler_name: 트리거 핸들러 이름
        handler: 작업 1건을 처리하는 함수 (예외는 기록 후 해당 작업을 버림)
        delay_seconds: 다음 작업까지 대기 시간
    """

    def __init__(
        self,
        key: str,
        handler_name: str,
        handler: Callable[[Task], Any],
        delay_seconds: float = config.DELAY_BETWEEN_UPLOADS_SECONDS,
        properties: PropertyStore | None = None,
        lock: ScriptLock | None = None,
        triggers: TriggerRegistry | None = None,
    ):
        self.key = key
        self.handler_name = handler_name
        self.handler = handler
        self.delay_seconds = delay_seconds
        self.properties = properties or get_script_properties()
        self.lock = lock or get_script_lock()
        self.triggers = triggers or get_trigger_registry()

    def load(self) -> list[Task]:
        """저장된 큐 목록 (없거나 손상되면 빈 목록)"""
        raw = self.properties.get_property(self.key)
        if not raw:
            return []
        try:
            queue = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"큐 데이터 손상 ({self.key}): {e}")
            return []
        return queue if isinstance(queue, list) else []

    def _persist(self, queue: list[Task]) -> None:
        if queue:
            self.properties.set_property(self.key, json.dumps(queue, ensure_ascii=False))
        else:
            self.properties.delete_property(self.key)

    def enqueue(self, task: Task) -> int:
        """작업 추가

        큐가 비어 있었으면 즉시 처리하고, 아니면 예약된 실행에 맡깁니다.

        Returns:
            추가 직후 큐 길이
        """
        with _queue_state_lock:
            queue = self.load()
            was_empty = len(queue) == 0
            queue.append(task)
            self._persist(queue)
            size = len(queue)

        if was_empty:
            logger.info("큐가 비어 있어 즉시 처리를 시작합니다.")
            self.process_next()
        else:
            logger.info(f"처리 중인 작업이 있어 순서대로 처리됩니다. (대기 {size}건)")
        return size

    def _schedule_next(self) -> None:
        if not self.triggers.has_trigger(self.handler_name):
            self.triggers.create_after(self.handler_name, self.delay_seconds, self.process_next)
            logger.info(f"다음 작업을 {self.delay_seconds:g}초 후 처리하도록 예약했습니다.")

    def process_next(self) -> bool:
        """큐에서 작업 1건 처리

        Returns:
            작업을 처리했으면 True (락 획득 실패/빈 큐면 False)
        """
        if not self.lock.try_lock(config.LOCK_TIMEOUT_SECONDS):
            logger.warning("락을 획득하지 못했습니다. 다른 큐 처리가 진행 중입니다.")
            return False

        try:
            self.triggers.delete_triggers(self.handler_name)

            with _queue_state_lock:
                queue = self.load()
                if not queue:
                    self._persist(queue)
                    return False
                task = queue[0]
            logger.info(f"작업 처리 시작 (남은 작업 {len(queue) - 1}건)")

            try:
                self.handler(task)
            except Exception as e:
                logger.error(f"작업 처리 실패: {e}")

            # 핸들러 실행 중 enqueue된 작업을 잃지 않도록 다시 읽어서 제거
            with _queue_state_lock:
                queue = self.load()
                if task in queue:
                    queue.remove(task)
                self._persist(queue)

            if queue:
                self._schedule_next()
            else:
                logger.info("모든 작업 처리 완료. 큐를 비웠습니다.")
            return True
        finally:
            self.lock.release_lock()
