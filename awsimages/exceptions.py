"""
awsimages/exceptions.py - 통합 예외 계층 구조

AMI 관리 도구 전체에서 사용되는 예외 클래스들을 정의합니다.
일관된 예외 처리와 에러 메시지를 제공합니다.

예외 계층 구조:
    ImagesError (베이스)
    ├── ConfigError (설정 누락/오류) - 프로바이더 생성 시 즉시 발생
    ├── ValidationError (CLI 입력 검증)
    ├── APICallError (단일 AWS API 호출 실패)
    ├── PartialRegionError (리전 안 변경 작업의 중간 실패)
    └── MultiRegionError (리전별 실패의 집계)

Usage:
    from awsimages.exceptions import ConfigError, MultiRegionError

    result = images.list_images()
    if result.error:
        for region, err in result.error.by_region().items():
            print(region, err)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from awsimages.parallel.types import RegionError

# =============================================================================
# 베이스 예외
# =============================================================================


class ImagesError(Exception):
    """awsimages 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(ImagesError):
    """설정 관련 예외

    리전, Access Key, Secret Key 등 필수 설정이 비어 있을 때 발생합니다.
    리전 작업이 시작되기 전에 한 번만 발생합니다.
    """

    def __init__(
        self,
        key: str,
        message: str,
        cause: Exception | None = None,
    ):
        full_message = f"{message}. Please check your configuration"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


class ValidationError(ImagesError):
    """입력 검증 오류"""

    def __init__(
        self,
        field: str,
        value: Any,
        expected: str,
        cause: Exception | None = None,
    ):
        message = f"invalid value for {field}: expected {expected}, got {value!r}"
        super().__init__(message, cause)
        self.field = field
        self.value = value
        self.expected = expected
        self.details.update(
            {
                "field": field,
                "value": str(value),
                "expected": expected,
            }
        )


# =============================================================================
# API 호출 관련 예외
# =============================================================================


class APICallError(ImagesError):
    """AWS API 호출 관련 예외

    boto3/botocore의 ClientError를 래핑하여 일관된 예외 처리를 제공합니다.
    """

    def __init__(
        self,
        operation: str,
        region: str | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
        cause: Exception | None = None,
    ):
        message = f"ec2.{operation}"
        if region:
            message = f"[{region}] {message}"
        if error_code:
            message = f"{message} failed ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.operation = operation
        self.region = region
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "operation": operation,
                "region": region,
                "error_code": error_code,
            }
        )

    def __str__(self) -> str:
        # cause 메시지는 이미 error_message에 포함됨
        return self.message

    @classmethod
    def from_client_error(
        cls,
        operation: str,
        client_error: Exception,
        region: str | None = None,
    ) -> APICallError:
        """botocore.exceptions.ClientError로부터 생성

        Args:
            operation: API 작업 이름
            client_error: ClientError 예외
            region: 호출이 실패한 리전

        Returns:
            APICallError 인스턴스
        """
        error_code = None
        error_message = None

        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")

        return cls(
            operation=operation,
            region=region,
            error_code=error_code,
            error_message=error_message or str(client_error),
            cause=client_error,
        )


class PartialRegionError(ImagesError):
    """리전 안의 변경 작업이 중간에 실패

    deregister/태그/권한 변경처럼 여러 번 호출하는 작업에서
    일부 호출이 이미 적용된 뒤 실패했을 때 발생합니다.

    Attributes:
        operation: 작업 이름
        completed: 실패 전에 적용된 단계 (이미지 ID 등)
    """

    def __init__(self, operation: str, completed: list[str], cause: Exception):
        self.operation = operation
        self.completed = list(completed)
        super().__init__(f"{operation} failed after {len(self.completed)} completed step(s)", cause)
        self.details.update({"operation": operation, "completed": self.completed})


class MultiRegionError(ImagesError):
    """리전별 실패를 하나로 합친 집계 예외

    팬아웃 호출 한 번에서 실패한 리전마다 RegionError 하나를 가집니다.
    문자열 표현은 모든 구성 에러를 리전과 함께 나열합니다.

    Attributes:
        errors: 리전별 에러 튜플 (완료 순서)
    """

    def __init__(self, errors: tuple[RegionError, ...] | list[RegionError]):
        self.errors = tuple(errors)
        count = len(self.errors)
        noun = "region" if count == 1 else "regions"
        super().__init__(f"{count} {noun} failed")
        self.details["regions"] = self.regions

    def __str__(self) -> str:
        lines = [f"{self.message}:"]
        lines.extend(f"\t* {err}" for err in self.errors)
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    @property
    def regions(self) -> list[str]:
        """실패한 리전 목록"""
        return [err.region for err in self.errors]

    def by_region(self) -> dict[str, RegionError]:
        """리전별 에러 딕셔너리"""
        return {err.region: err for err in self.errors}

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = [err.to_dict() for err in self.errors]
        return data


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================


def _error_code(error: Exception) -> str | None:
    if isinstance(error, APICallError):
        return error.error_code

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code", "")

    return None


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인"""
    return _error_code(error) in (
        "AccessDenied",
        "AccessDeniedException",
        "UnauthorizedAccess",
        "UnauthorizedOperation",
        "AuthFailure",
    )


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return _error_code(error) in {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "RateExceeded",
    }


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    return _error_code(error) in {
        "InvalidAMIID.NotFound",
        "InvalidAMIID.Unavailable",
        "InvalidAMIID.Malformed",
        "ResourceNotFoundException",
        "NotFoundException",
    }


def is_dry_run(error: Exception) -> bool:
    """DryRun=True 요청이 '성공했을 것'이라는 응답인지 확인

    EC2는 DryRun 요청이 권한 검사를 통과하면 DryRunOperation 에러를 반환합니다.
    """
    return _error_code(error) == "DryRunOperation"


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    if isinstance(error, ImagesError):
        return str(error)

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_info = response.get("Error", {})
        code = error_info.get("Code", "UnknownError")
        message = error_info.get("Message", str(error))

        friendly_messages = {
            "AuthFailure": "AWS was not able to validate the provided access credentials",
            "UnauthorizedOperation": "You are not authorized to perform this operation",
            "RequestLimitExceeded": "Request limit exceeded, try again later",
            "ExpiredToken": "The security token included in the request is expired",
        }

        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)
