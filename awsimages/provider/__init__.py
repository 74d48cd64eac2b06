"""
awsimages/provider - AWS AMI 프로바이더

주요 구성 요소:
- AwsImages: 설정 검증 + 리전별 클라이언트 + list/copy/delete/modify
- RegionalClientRegistry: 리전 -> EC2 클라이언트 매핑
- help_text: 명령어별 정적 도움말
"""

from .help import help_text
from .images import AwsImages
from .registry import RegionalClientRegistry

__all__ = [
    "AwsImages",
    "RegionalClientRegistry",
    "help_text",
]
