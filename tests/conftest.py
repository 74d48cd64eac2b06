"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(make_session, make_image):
        # make_session: 리전 -> MagicMock 클라이언트를 돌려주는 boto3.Session 대역
        # make_image: describe_images 응답 형식의 이미지 dict 생성
        pass
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """테스트 환경 설정

    개발자 환경의 IMAGES_AWS_* 변수와 ~/.imagesrc가 테스트에 섞이지 않도록 격리합니다.
    """
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")

    for var in ("REGION", "REGION_EXCLUDE", "ACCESS_KEY", "SECRET_KEY"):
        monkeypatch.delenv(f"IMAGES_AWS_{var}", raising=False)

    monkeypatch.setattr("awsimages.config.DEFAULT_CONFIG_PATH", tmp_path / "missing-imagesrc")

    yield


# =============================================================================
# 데이터 헬퍼
# =============================================================================


def make_image_dict(
    image_id: str,
    creation_date: str = "2024-01-01T00:00:00.000Z",
    name: Optional[str] = None,
    owner_id: str = "123456789012",
    **extra: Any,
) -> Dict[str, Any]:
    """describe_images 응답의 이미지 레코드 생성"""
    image = {
        "ImageId": image_id,
        "Name": name or f"image-{image_id}",
        "CreationDate": creation_date,
        "OwnerId": owner_id,
        "State": "available",
    }
    image.update(extra)
    return image


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "DescribeImages",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


@pytest.fixture
def make_image():
    return make_image_dict


@pytest.fixture
def client_error():
    return create_mock_client_error


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def mock_ec2_client():
    """EC2 클라이언트 모킹 (이미지 3개, 생성일 역순)"""
    mock_client = MagicMock()

    mock_client.describe_images.return_value = {
        "Images": [
            make_image_dict("ami-3", "2024-03-01T00:00:00.000Z"),
            make_image_dict("ami-1", "2024-01-01T00:00:00.000Z"),
            make_image_dict("ami-2", "2024-02-01T00:00:00.000Z"),
        ]
    }
    mock_client.copy_image.return_value = {"ImageId": "ami-copy"}

    yield mock_client


@pytest.fixture
def make_session():
    """리전별 클라이언트를 돌려주는 boto3.Session 대역 생성

    Usage:
        session = make_session({"us-east-1": client_a, "eu-west-1": client_b})
        session.client("ec2", region_name="eu-west-1")  # client_b
    """

    def _make(clients: Dict[str, Any]) -> MagicMock:
        session = MagicMock()

        def client(service_name, region_name=None, **kwargs):
            if region_name not in clients:
                clients[region_name] = MagicMock(name=f"ec2-{region_name}")
            return clients[region_name]

        session.client.side_effect = client
        return session

    return _make


# =============================================================================
# moto 통합 (선택적)
# =============================================================================

try:
    import moto

    @pytest.fixture
    def aws_credentials(monkeypatch):
        """moto 사용 시 AWS 자격 증명 설정"""
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
        monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
        monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
        monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")

    @pytest.fixture
    def moto_aws(aws_credentials):
        """moto 전역 모킹"""
        with moto.mock_aws():
            yield

    @pytest.fixture
    def create_owned_image(moto_aws):
        """moto 리전에 계정 소유 AMI 생성

        Usage:
            image_id = create_owned_image("us-east-1", "app-v1", tags={"env": "dev"})
        """
        import boto3

        def _create(region: str, name: str, tags: Optional[Dict[str, str]] = None) -> str:
            ec2 = boto3.client("ec2", region_name=region)
            base_ami = ec2.describe_images(Owners=["amazon"])["Images"][0]["ImageId"]
            reservation = ec2.run_instances(ImageId=base_ami, MinCount=1, MaxCount=1)
            instance_id = reservation["Instances"][0]["InstanceId"]
            image_id = ec2.create_image(InstanceId=instance_id, Name=name)["ImageId"]
            if tags:
                ec2.create_tags(
                    Resources=[image_id],
                    Tags=[{"Key": k, "Value": v} for k, v in tags.items()],
                )
            return image_id

        return _create

except ImportError:
    # moto가 설치되지 않은 경우 더미 픽스처
    @pytest.fixture
    def moto_aws():
        pytest.skip("moto not installed")

    @pytest.fixture
    def create_owned_image():
        pytest.skip("moto not installed")
