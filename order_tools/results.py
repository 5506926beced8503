"""
결과 클래스 정의
================

각 도구(핸들러)의 처리 결과와 상태를 표현하는 데이터 클래스입니다.
핸들러는 예외를 경계에서 잡아 ToolResult로 변환해 반환합니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ResultStatus(Enum):
    """처리 상태"""
    SUCCESS = auto()           # 성공
    QUEUED = auto()            # 큐에 등록됨 (백그라운드 처리 예정)
    NOT_FOUND = auto()         # 대상 데이터 없음
    VALIDATION_ERROR = auto()  # 입력값 검증 오류
    SHEET_ERROR = auto()       # 시트 누락/헤더 오류
    FAILED = auto()            # 기타 처리 실패


@dataclass
class ToolResult:
    """도구 처리 결과

    Attributes:
        success: 성공 여부
        status: 처리 상태
        message: 사용자에게 보여줄 결과 메시지
        data: 부가 결과값 (파일명, 행 수 등)
        errors: 오류 목록
        warnings: 경고 목록
    """
    success: bool
    status: ResultStatus
    message: str = ''
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def get(self, key: str, default: Any = None) -> Any:
        """data에서 값 가져오기"""
        return self.data.get(key, default)

    @classmethod
    def ok(cls, message: str, **data: Any) -> ToolResult:
        """성공 결과 생성"""
        return cls(success=True, status=ResultStatus.SUCCESS, message=message, data=data)

    @classmethod
    def queued(cls, message: str, **data: Any) -> ToolResult:
        """큐 등록 결과 생성"""
        return cls(success=True, status=ResultStatus.QUEUED, message=message, data=data)

    @classmethod
    def not_found(cls, message: str) -> ToolResult:
        """데이터 없음 결과 생성"""
        return cls(
            success=False,
            status=ResultStatus.NOT_FOUND,
            message=message,
            errors=[message],
        )

    @classmethod
    def validation_error(
        cls,
        errors: list[str],
        warnings: list[str] | None = None,
    ) -> ToolResult:
        """검증 오류 결과 생성"""
        return cls(
            success=False,
            status=ResultStatus.VALIDATION_ERROR,
            message=errors[0] if errors else "검증 오류가 발생했습니다.",
            errors=errors,
            warnings=warnings or [],
        )

    @classmethod
    def sheet_error(cls, error_message: str) -> ToolResult:
        """시트 오류 결과 생성"""
        return cls(
            success=False,
            status=ResultStatus.SHEET_ERROR,
            message=f"시트 오류: {error_message}",
            errors=[error_message],
        )

    @classmethod
    def failed(cls, error_message: str) -> ToolResult:
        """처리 실패 결과 생성"""
        return cls(
            success=False,
            status=ResultStatus.FAILED,
            message=f"처리 실패: {error_message}",
            errors=[error_message],
        )
