"""
awsimages/provider/images.py - 멀티 리전 AMI 관리

설정을 검증하고 리전별 클라이언트 레지스트리를 만든 뒤,
list/copy/delete/modify 명령을 각각 팬아웃 호출 한 번으로 실행합니다.

필요한 AWS 권한:
    - list: ec2:DescribeImages
    - copy: ec2:CopyImage (+ 이름 조회 시 ec2:DescribeImages)
    - delete: ec2:DescribeImages, ec2:DeregisterImage
    - modify: ec2:DescribeImages, ec2:CreateTags, ec2:DeleteTags, ec2:ModifyImageAttribute

Usage:
    from awsimages.config import load_config
    from awsimages.provider import AwsImages

    images = AwsImages(load_config(region="all", region_exclude="us-west-2"))
    result = images.owner_images()

    for region, region_images in result.images.items():
        print(region, [i["ImageId"] for i in region_images])

    if result.error:
        print(result.error)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from functools import partial
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError, InvalidRegionError

from awsimages.exceptions import APICallError, ConfigError, PartialRegionError, ValidationError, is_dry_run
from awsimages.parallel import FanOutConfig, FanOutResult, Image, RegionFanOutExecutor, get_client
from awsimages.region import resolve_regions

from .help import help_text
from .registry import RegionalClientRegistry

if TYPE_CHECKING:
    from awsimages.config import AwsConfig

logger = logging.getLogger(__name__)

# modify_image_attribute에서 공개(public) 권한을 의미하는 값
PUBLIC_LAUNCH_PERMISSION = "all"


def _call(func: Callable[..., Any], dry_run: bool, **kwargs: Any) -> Any:
    """EC2 API 호출 (DryRun 응답은 성공으로 처리)

    DryRun=True일 때 EC2는 권한이 있으면 DryRunOperation 에러를 반환합니다.
    """
    try:
        return func(DryRun=dry_run, **kwargs)
    except ClientError as e:
        if dry_run and is_dry_run(e):
            return None
        raise


def _image_filters(image_ids: Sequence[str] = (), tags: Sequence[tuple[str, str]] = ()) -> list[dict[str, Any]]:
    filters: list[dict[str, Any]] = []
    if image_ids:
        filters.append({"Name": "image-id", "Values": list(image_ids)})
    for key, value in tags:
        filters.append({"Name": f"tag:{key}", "Values": [value]})
    return filters


def _launch_permissions(values: Iterable[str]) -> list[dict[str, str]]:
    permissions: list[dict[str, str]] = []
    for value in values:
        if value.lower() == PUBLIC_LAUNCH_PERMISSION:
            permissions.append({"Group": "all"})
        else:
            permissions.append({"UserId": value})
    return permissions


def _run_steps(operation: str, steps: Iterable[tuple[str, Callable[[], Any]]]) -> None:
    """변경 호출을 순서대로 실행

    중간에 실패하면 이미 끝난 단계를 담은 PartialRegionError를 던집니다.
    첫 단계에서 실패하면 원래 예외를 그대로 던집니다.

    Args:
        operation: 작업 이름 (에러 표시용)
        steps: (완료 표시 문자열, 호출 함수) 목록
    """
    completed: list[str] = []
    for label, step in steps:
        try:
            step()
        except (ClientError, BotoCoreError) as e:
            if not completed:
                raise
            raise PartialRegionError(operation, completed, e) from e
        completed.append(label)


class AwsImages:
    """여러 리전의 AMI를 하나의 뷰로 관리

    Attributes:
        config: 프로바이더 설정
        registry: 리전별 EC2 클라이언트
        executor: 팬아웃 실행기
    """

    def __init__(
        self,
        config: AwsConfig,
        session: boto3.Session | None = None,
        fan_out_config: FanOutConfig | None = None,
    ):
        """설정 검증 후 리전별 클라이언트 생성

        Args:
            config: 프로바이더 설정
            session: 테스트용 boto3 Session (None이면 정적 자격증명으로 생성)
            fan_out_config: 팬아웃 설정

        Raises:
            ConfigError: 필수 설정이 없거나 해석된 리전이 비어 있을 때.
                어떤 리전 클라이언트도 만들기 전에 발생합니다.
        """
        config.validate()

        regions = resolve_regions(config.region, config.region_exclude)
        if not regions:
            raise ConfigError(
                "region",
                f"No AWS region left for region={config.region!r} region_exclude={config.region_exclude!r}",
            )

        self.config = config
        self._session = session or boto3.Session(
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
        )
        self.registry = RegionalClientRegistry.build(regions, self._session)
        self.executor = RegionFanOutExecutor(self.registry, fan_out_config)

        logger.info(f"AWS 프로바이더 초기화: {len(regions)}개 리전")

    @property
    def regions(self) -> tuple[str, ...]:
        return self.registry.regions

    # =========================================================================
    # list
    # =========================================================================

    def multi_images(self, **describe_input: Any) -> FanOutResult:
        """모든 리전에 같은 DescribeImages 요청을 실행

        Args:
            **describe_input: describe_images 인자 (Owners, Filters, ImageIds 등)

        Returns:
            FanOutResult: 리전 -> 생성일 오름차순 이미지 목록
        """

        def describe(client: Any, region: str) -> list[Image]:
            return client.describe_images(**describe_input).get("Images", [])

        return self.executor.execute(describe, operation_name="describe_images")

    def owner_images(self) -> FanOutResult:
        """계정이 소유한 이미지 조회"""
        return self.multi_images(Owners=["self"])

    def list_images(
        self,
        owners: Sequence[str] = ("self",),
        names: Sequence[str] = (),
        image_ids: Sequence[str] = (),
    ) -> FanOutResult:
        """소유자/이름/ID 조건으로 이미지 조회

        Args:
            owners: 소유자 ("self", "amazon", 계정 ID 등)
            names: 이름 필터 (와일드카드 허용)
            image_ids: 이미지 ID 필터
        """
        describe_input: dict[str, Any] = {}
        if owners:
            describe_input["Owners"] = list(owners)

        filters = _image_filters(image_ids)
        if names:
            filters.append({"Name": "name", "Values": list(names)})
        if filters:
            describe_input["Filters"] = filters

        return self.multi_images(**describe_input)

    # =========================================================================
    # copy
    # =========================================================================

    def copy_image(
        self,
        image_id: str,
        source_region: str,
        to_regions: Sequence[str] | None = None,
        name: str | None = None,
        description: str | None = None,
        dry_run: bool = False,
    ) -> FanOutResult:
        """이미지를 소스 리전에서 대상 리전들로 복사

        대상 리전마다 CopyImage를 호출하며, 결과 이미지 레코드에는
        새 이미지 ID(ImageId)와 원본 정보가 담깁니다.

        Args:
            image_id: 원본 이미지 ID
            source_region: 원본 이미지 리전
            to_regions: 대상 리전 (None이면 소스를 제외한 설정된 모든 리전)
            name: 새 이미지 이름 (None이면 원본 이미지 이름)
            description: 새 이미지 설명
            dry_run: 권한만 확인

        Raises:
            ValidationError: 대상 리전이 없을 때
            APICallError: 원본 이미지 이름을 조회할 수 없을 때
        """
        if to_regions is None:
            targets = [r for r in self.regions if r != source_region]
        else:
            targets = [r for r in to_regions if r]

        if not targets:
            raise ValidationError("to", ", ".join(to_regions or ()), "at least one target region other than the source")

        if not name:
            name = self._source_image_name(image_id, source_region)

        copy_input: dict[str, Any] = {
            "SourceImageId": image_id,
            "SourceRegion": source_region,
            "Name": name,
        }
        if description:
            copy_input["Description"] = description

        def copy(client: Any, region: str) -> list[Image]:
            response = _call(client.copy_image, dry_run, **copy_input)
            record: Image = {
                "ImageId": response.get("ImageId") if response else None,
                "Name": name,
                "SourceImageId": image_id,
                "SourceRegion": source_region,
            }
            if dry_run:
                record["DryRun"] = True
            logger.debug(f"[{region}] copy_image {image_id} -> {record['ImageId']}")
            return [record]

        return self.executor.execute(copy, operation_name="copy_image", regions=targets)

    def _source_image_name(self, image_id: str, source_region: str) -> str:
        """원본 이미지 이름 조회 (소스 리전 한 곳만 호출)"""
        client = self.registry.get(source_region)
        if client is None:
            try:
                client = get_client(self._session, "ec2", region_name=source_region)
            except InvalidRegionError as e:
                raise ValidationError("source_region", source_region, "a valid AWS region", cause=e) from e

        try:
            images = client.describe_images(ImageIds=[image_id]).get("Images", [])
        except ClientError as e:
            raise APICallError.from_client_error("describe_images", e, region=source_region) from e
        except BotoCoreError as e:
            raise APICallError("describe_images", region=source_region, error_message=str(e), cause=e) from e

        if not images:
            raise APICallError(
                "describe_images",
                region=source_region,
                error_code="InvalidAMIID.NotFound",
                error_message=f"image {image_id} not found",
            )
        return images[0].get("Name") or f"copy-of-{image_id}-from-{source_region}"

    # =========================================================================
    # delete
    # =========================================================================

    def delete_images(
        self,
        image_ids: Sequence[str] = (),
        tags: Sequence[tuple[str, str]] = (),
        dry_run: bool = False,
    ) -> FanOutResult:
        """조건에 맞는 소유 이미지를 각자의 리전에서 deregister

        리전마다 조건에 맞는 이미지를 조회한 뒤 하나씩 deregister하고,
        대상이 된 이미지 목록을 반환합니다. 중간에 실패한 리전의 RegionError는
        이미 deregister된 이미지 ID를 completed에 담습니다.

        Args:
            image_ids: 삭제할 이미지 ID
            tags: (key, value) 태그 조건
            dry_run: 권한만 확인

        Raises:
            ValidationError: 이미지 ID와 태그가 모두 비어 있을 때
        """
        if not image_ids and not tags:
            raise ValidationError("image_ids", "", "at least one image id or tag")

        filters = _image_filters(image_ids, tags)

        def delete(client: Any, region: str) -> list[Image]:
            images = client.describe_images(Owners=["self"], Filters=filters).get("Images", [])
            _run_steps(
                "deregister_image",
                [
                    (image["ImageId"], partial(_call, client.deregister_image, dry_run, ImageId=image["ImageId"]))
                    for image in images
                ],
            )
            for image in images:
                logger.info(f"[{region}] deregister_image {image['ImageId']}{' (dry-run)' if dry_run else ''}")
            return images

        return self.executor.execute(delete, operation_name="deregister_image")

    # =========================================================================
    # modify
    # =========================================================================

    def modify_images(
        self,
        image_ids: Sequence[str],
        create_tags: Sequence[tuple[str, str]] = (),
        delete_tags: Sequence[tuple[str, str | None]] = (),
        add_launch_permissions: Sequence[str] = (),
        remove_launch_permissions: Sequence[str] = (),
        dry_run: bool = False,
    ) -> FanOutResult:
        """이미지 태그와 시작 권한 변경

        Args:
            image_ids: 대상 이미지 ID
            create_tags: 생성/교체할 (key, value) 태그
            delete_tags: 삭제할 (key, value|None) 태그 (None이면 값과 무관하게 삭제)
            add_launch_permissions: 시작 권한을 줄 계정 ID 또는 "all"
            remove_launch_permissions: 시작 권한을 회수할 계정 ID 또는 "all"
            dry_run: 권한만 확인

        Raises:
            ValidationError: 대상 이미지나 변경 내용이 없을 때
        """
        if not image_ids:
            raise ValidationError("image_ids", "", "at least one image id")
        if not (create_tags or delete_tags or add_launch_permissions or remove_launch_permissions):
            raise ValidationError("modify", "", "at least one tag or launch permission change")

        filters = _image_filters(image_ids)
        tags_to_create = [{"Key": k, "Value": v} for k, v in create_tags]
        tags_to_delete = [{"Key": k} if v is None else {"Key": k, "Value": v} for k, v in delete_tags]

        launch_permission: dict[str, list[dict[str, str]]] = {}
        if add_launch_permissions:
            launch_permission["Add"] = _launch_permissions(add_launch_permissions)
        if remove_launch_permissions:
            launch_permission["Remove"] = _launch_permissions(remove_launch_permissions)

        def modify(client: Any, region: str) -> list[Image]:
            images = client.describe_images(Owners=["self"], Filters=filters).get("Images", [])
            if not images:
                return []

            ids = [image["ImageId"] for image in images]
            steps: list[tuple[str, Callable[[], Any]]] = []
            if tags_to_create:
                steps.append(
                    (
                        f"create_tags {' '.join(ids)}",
                        partial(_call, client.create_tags, dry_run, Resources=ids, Tags=tags_to_create),
                    )
                )
            if tags_to_delete:
                steps.append(
                    (
                        f"delete_tags {' '.join(ids)}",
                        partial(_call, client.delete_tags, dry_run, Resources=ids, Tags=tags_to_delete),
                    )
                )
            if launch_permission:
                for image_id in ids:
                    steps.append(
                        (
                            f"launch_permission {image_id}",
                            partial(
                                _call,
                                client.modify_image_attribute,
                                dry_run,
                                ImageId=image_id,
                                LaunchPermission=launch_permission,
                            ),
                        )
                    )
            _run_steps("modify_images", steps)

            logger.info(f"[{region}] modify {', '.join(ids)}{' (dry-run)' if dry_run else ''}")
            return images

        return self.executor.execute(modify, operation_name="modify_images")

    # =========================================================================
    # help
    # =========================================================================

    @staticmethod
    def help(command: str) -> str:
        """명령어 도움말 (알 수 없는 명령어도 예외 없이 문자열 반환)"""
        return help_text(command)
