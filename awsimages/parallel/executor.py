"""
awsimages/parallel/executor.py - 멀티 리전 팬아웃 실행기

같은 논리 작업을 레지스트리의 모든 리전 클라이언트에 동시에 실행하고
(fan-out), 리전별 결과를 하나의 맵과 하나의 집계 에러로 합칩니다 (fan-in).
ThreadPoolExecutor 기반이며 리전 수만큼 워커를 띄웁니다.

동작 규칙:
- 모든 리전을 항상 시도하며, 한 리전의 실패가 다른 리전을 막지 않음
- 모든 워커가 끝날 때까지 대기 (조기 반환, 취소, 타임아웃 없음)
- 재시도 없음 (타임아웃은 transport 레벨에서만 적용)
- 결과 맵/에러 목록은 수집 스레드에서만 기록 (워커는 공유 상태를 건드리지 않음)

Example:
    from awsimages.parallel import RegionFanOutExecutor

    def describe_own_images(client, region):
        return client.describe_images(Owners=["self"])["Images"]

    executor = RegionFanOutExecutor(registry)
    result = executor.execute(describe_own_images, operation_name="describe_images")

    print(f"성공: {result.success_count}, 실패: {result.error_count}")
    if result.error:
        print(result.error)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .errors import to_region_error
from .ordering import sort_by_creation
from .types import ErrorCategory, FanOutResult, Image, MultiImages, RegionError

if TYPE_CHECKING:
    from awsimages.provider.registry import RegionalClientRegistry

logger = logging.getLogger(__name__)

# (client, region) -> 이미지 목록
RegionalOperation = Callable[[Any, str], list[Image]]


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


@dataclass
class FanOutConfig:
    """팬아웃 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (None이면 대상 리전 수만큼, 상한 없음)
    """

    max_workers: int | None = None

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def workers_for(self, task_count: int) -> int:
        if self.max_workers is None:
            return task_count
        return min(self.max_workers, task_count)


@dataclass
class _RegionOutcome:
    """워커 하나의 결과 (성공 시 images, 실패 시 error)"""

    region: str
    images: list[Image] | None = None
    error: RegionError | None = None


class RegionFanOutExecutor:
    """멀티 리전 팬아웃 실행기

    특징:
    - 리전 하나당 워커 하나 (ThreadPoolExecutor)
    - 수집 스레드에서 as_completed로 결과를 모으는 fan-in
    - 성공한 리전의 이미지 목록은 생성일 오름차순 정렬
    - 실패는 리전 태그가 붙은 RegionError로 수집
    """

    def __init__(
        self,
        registry: RegionalClientRegistry,
        config: FanOutConfig | None = None,
    ):
        """초기화

        Args:
            registry: 리전별 클라이언트 레지스트리
            config: 팬아웃 설정 (None이면 기본값)
        """
        self.registry = registry
        self.config = config or FanOutConfig()

    def execute(
        self,
        operation: RegionalOperation,
        operation_name: str = "operation",
        regions: Iterable[str] | None = None,
    ) -> FanOutResult:
        """작업 함수를 대상 리전 전체에 병렬 실행

        Args:
            operation: (client, region) -> 이미지 목록 함수
            operation_name: 로깅/에러 표시용 작업 이름
            regions: 대상 리전 (None이면 레지스트리 전체).
                레지스트리에 없는 리전은 해당 리전의 에러로 기록됩니다.

        Returns:
            FanOutResult: 성공한 리전의 이미지 맵 + 실패한 리전의 에러
        """
        targets, errors = self._build_targets(regions, operation_name)

        if not targets and not errors:
            logger.warning("실행할 리전이 없습니다")
            return FanOutResult()

        images: MultiImages = {}
        start_time = time.monotonic()

        if targets:
            workers = self.config.workers_for(len(targets))
            logger.info(f"팬아웃 시작: {operation_name}, {len(targets)}개 리전, max_workers={workers}")

            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fanout") as pool:
                futures = {
                    pool.submit(self._execute_single, operation, operation_name, region, client): region
                    for region, client in targets
                }

                # 완료된 순서대로 수집 (공유 상태는 이 스레드에서만 기록)
                for future in as_completed(futures):
                    region = futures[future]
                    try:
                        outcome = future.result()
                    except Exception as e:
                        # 예상치 못한 executor 에러
                        logger.error(f"작업 실행 중 예외 [{region}]: {e}")
                        _clear_exception_chain(e)
                        outcome = _RegionOutcome(
                            region=region,
                            error=RegionError(
                                region=region,
                                operation=operation_name,
                                category=ErrorCategory.UNKNOWN,
                                error_code="ExecutorError",
                                message=str(e),
                                original_exception=e,
                            ),
                        )

                    if outcome.error is not None:
                        errors.append(outcome.error)
                    else:
                        images[region] = outcome.images or []

        duration_ms = (time.monotonic() - start_time) * 1000
        result = FanOutResult(images=images, errors=tuple(errors), duration_ms=duration_ms)

        logger.info(
            f"팬아웃 완료: {operation_name}, {result.total_count}개 리전 중 성공 {result.success_count}, "
            f"실패 {result.error_count}, 총 {duration_ms:.0f}ms"
        )
        return result

    def _build_targets(
        self,
        regions: Iterable[str] | None,
        operation_name: str,
    ) -> tuple[list[tuple[str, Any]], list[RegionError]]:
        """대상 (리전, 클라이언트) 목록과 레지스트리에 없는 리전의 에러 생성"""
        if regions is None:
            return list(self.registry.items()), []

        targets: list[tuple[str, Any]] = []
        errors: list[RegionError] = []
        seen: set[str] = set()

        for region in regions:
            if region in seen:
                continue
            seen.add(region)

            if region in self.registry:
                targets.append((region, self.registry[region]))
            else:
                logger.warning(f"[{region}] 등록되지 않은 리전이라 스킵")
                errors.append(
                    RegionError(
                        region=region,
                        operation=operation_name,
                        category=ErrorCategory.INVALID_REQUEST,
                        error_code="UnknownRegion",
                        message=f"region {region} is not configured",
                    )
                )

        return targets, errors

    def _execute_single(
        self,
        operation: RegionalOperation,
        operation_name: str,
        region: str,
        client: Any,
    ) -> _RegionOutcome:
        """단일 리전 작업 실행 (워커 스레드 내에서 호출)

        예외를 던지지 않고 항상 _RegionOutcome을 반환합니다.
        """
        try:
            images = operation(client, region) or []
        except Exception as e:
            _clear_exception_chain(e)
            error = to_region_error(e, region, operation_name)
            logger.warning(str(error))
            return _RegionOutcome(region=region, error=error)

        # 오래된 이미지 먼저
        return _RegionOutcome(region=region, images=sort_by_creation(list(images)))
