"""
awsimages/parallel - 멀티 리전 팬아웃/팬인 모듈

같은 AMI 작업을 여러 리전에 병렬로 실행하고 결과를 합칩니다.

주요 구성 요소:
- RegionFanOutExecutor: 리전별 병렬 실행기
- FanOutResult: 리전 -> 이미지 맵 + 리전 태그가 붙은 에러
- sort_by_creation: 리전별 이미지 생성일 오름차순 정렬

Example:
    from awsimages.parallel import RegionFanOutExecutor

    def describe(client, region):
        return client.describe_images(Owners=["self"])["Images"]

    result = RegionFanOutExecutor(registry).execute(describe, operation_name="describe_images")

    for region, images in result.images.items():
        print(region, len(images))

    if result.error:
        print(result.error)
"""

from .client import get_client
from .errors import categorize_error, categorize_error_code, get_error_code, to_region_error
from .executor import FanOutConfig, RegionFanOutExecutor, RegionalOperation
from .ordering import parse_creation_date, sort_by_creation
from .types import ErrorCategory, FanOutResult, Image, MultiImages, RegionError

__all__: list[str] = [
    # Executor
    "RegionFanOutExecutor",
    "FanOutConfig",
    "RegionalOperation",
    # Client
    "get_client",
    # Errors
    "categorize_error",
    "categorize_error_code",
    "get_error_code",
    "to_region_error",
    # Ordering
    "sort_by_creation",
    "parse_creation_date",
    # Types
    "ErrorCategory",
    "RegionError",
    "FanOutResult",
    "Image",
    "MultiImages",
]
