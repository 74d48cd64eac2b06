"""
awsimages/parallel/types.py - 팬아웃 실행 결과 타입

주요 구성 요소:
- ErrorCategory: 에러 분류
- RegionError: 리전 하나의 실패 정보 (리전 태그 포함)
- FanOutResult: 리전별 이미지 맵 + 리전별 에러
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from awsimages.exceptions import MultiRegionError

# 리전 -> 이미지 목록 (boto3 응답 dict 그대로)
Image = dict[str, Any]
MultiImages = dict[str, list[Image]]


class ErrorCategory(Enum):
    """에러 카테고리"""

    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    THROTTLING = "throttling"
    TIMEOUT = "timeout"
    INVALID_REQUEST = "invalid_request"
    SERVICE_ERROR = "service_error"
    EXPIRED_TOKEN = "expired_token"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RegionError:
    """리전 하나에서 발생한 작업 실패

    Attributes:
        region: 실패한 리전
        operation: 작업 이름 (예: "describe_images")
        category: 에러 카테고리
        error_code: AWS 에러 코드 또는 예외 클래스명
        message: 에러 메시지
        completed: 실패 전에 이미 적용된 단계 (변경 작업의 부분 실패)
        original_exception: 원본 예외 (디버깅용)
    """

    region: str
    operation: str
    category: ErrorCategory
    error_code: str
    message: str
    completed: tuple[str, ...] = ()
    original_exception: Exception | None = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        text = f"[{self.region}] {self.operation}: {self.error_code} - {self.message}"
        if self.completed:
            text += f" (completed before failure: {', '.join(self.completed)})"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "operation": self.operation,
            "category": self.category.value,
            "error_code": self.error_code,
            "message": self.message,
            "completed": list(self.completed),
        }


@dataclass(frozen=True)
class FanOutResult:
    """팬아웃 호출 한 번의 결과

    images에는 성공한 리전만 키로 존재합니다.
    images가 비어있지 않으면서 errors도 있는 부분 성공이 정상적인 결과이므로
    호출자는 두 쪽을 모두 확인해야 합니다.

    Attributes:
        images: 리전 -> 생성일 오름차순 이미지 목록
        errors: 실패한 리전별 에러 (완료 순서)
        duration_ms: 전체 소요 시간 (밀리초)
    """

    images: MultiImages = field(default_factory=dict)
    errors: tuple[RegionError, ...] = ()
    duration_ms: float = 0.0

    @property
    def success_count(self) -> int:
        return len(self.images)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def total_count(self) -> int:
        return self.success_count + self.error_count

    @property
    def ok(self) -> bool:
        """모든 리전이 성공했는지"""
        return not self.errors

    @property
    def partial(self) -> bool:
        """일부 리전만 성공했는지"""
        return bool(self.images) and bool(self.errors)

    @property
    def error(self) -> MultiRegionError | None:
        """집계 에러 (모든 리전 성공 시 None)"""
        if not self.errors:
            return None
        return MultiRegionError(self.errors)

    @property
    def image_count(self) -> int:
        return sum(len(images) for images in self.images.values())

    def raise_for_error(self) -> None:
        """실패한 리전이 하나라도 있으면 MultiRegionError 발생"""
        error = self.error
        if error is not None:
            raise error
