"""
awsimages/parallel/errors.py - AWS API 에러 분류

팬아웃 워커에서 발생한 예외를 RegionError로 변환하기 위한 분류 유틸리티입니다.

주요 구성 요소:
- categorize_error: 예외를 ErrorCategory로 분류
- categorize_error_code: 에러 코드 문자열 기반 분류
- get_error_code: 예외에서 에러 코드 추출
- to_region_error: 예외 -> RegionError 변환
"""

from __future__ import annotations

import logging

from botocore.exceptions import ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError

from awsimages.exceptions import PartialRegionError, is_access_denied, is_not_found, is_throttling

from .types import ErrorCategory, RegionError

logger = logging.getLogger(__name__)


def categorize_error_code(error_code: str) -> ErrorCategory:
    """에러 코드 문자열을 기반으로 ErrorCategory 분류

    Args:
        error_code: AWS 에러 코드 문자열 (예: "AuthFailure", "RequestLimitExceeded")

    Returns:
        분류된 에러 카테고리. 매칭되는 키워드가 없으면 UNKNOWN 반환.
    """
    code = error_code.lower()

    if any(x in code for x in ["accessdenied", "unauthorized", "forbidden", "authfailure"]):
        return ErrorCategory.ACCESS_DENIED
    if any(x in code for x in ["expiredtoken"]):
        return ErrorCategory.EXPIRED_TOKEN
    if any(x in code for x in ["notfound", "nosuch", "doesnotexist"]):
        return ErrorCategory.NOT_FOUND
    if any(x in code for x in ["throttl", "ratelimit", "requestlimitexceeded", "toomanyrequests"]):
        return ErrorCategory.THROTTLING
    if any(x in code for x in ["timeout", "timedout"]):
        return ErrorCategory.TIMEOUT
    if any(x in code for x in ["invalid", "validation", "malformed", "missingparameter"]):
        return ErrorCategory.INVALID_REQUEST
    if any(x in code for x in ["internal", "unavailable", "serviceerror"]):
        return ErrorCategory.SERVICE_ERROR

    return ErrorCategory.UNKNOWN


def categorize_error(error: Exception) -> ErrorCategory:
    """예외 객체를 분석하여 ErrorCategory로 분류

    ClientError의 경우 response에서 에러 코드를 추출하고,
    네트워크/타임아웃 에러는 타입으로 분류합니다.
    """
    if is_throttling(error):
        return ErrorCategory.THROTTLING
    if is_access_denied(error):
        return ErrorCategory.ACCESS_DENIED
    if is_not_found(error):
        return ErrorCategory.NOT_FOUND

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return categorize_error_code(response.get("Error", {}).get("Code", ""))

    if isinstance(error, (ConnectTimeoutError, ReadTimeoutError, TimeoutError)):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (EndpointConnectionError, ConnectionError, OSError)):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN


def get_error_code(error: Exception) -> str:
    """예외 객체에서 에러 코드 문자열 추출

    ClientError의 경우 response에서 Code를 추출하고,
    그 외에는 예외 클래스명을 반환합니다.
    """
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        code: str = response.get("Error", {}).get("Code", "Unknown")
        return code
    return error.__class__.__name__


def get_error_message(error: Exception) -> str:
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        message = response.get("Error", {}).get("Message")
        if message:
            return str(message)
    return str(error)


def to_region_error(error: Exception, region: str, operation: str) -> RegionError:
    """예외를 리전 태그가 붙은 RegionError로 변환

    PartialRegionError는 원인 예외로 분류하고 완료된 단계를 함께 담습니다.
    """
    cause: Exception = error
    completed: tuple[str, ...] = ()
    if isinstance(error, PartialRegionError) and error.cause is not None:
        cause = error.cause
        completed = tuple(error.completed)

    return RegionError(
        region=region,
        operation=operation,
        category=categorize_error(cause),
        error_code=get_error_code(cause),
        message=get_error_message(cause),
        completed=completed,
        original_exception=error,
    )
