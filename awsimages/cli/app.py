"""
awsimages/cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.
각 명령은 요청 하나를 만들어 멀티 리전 팬아웃을 한 번 실행하고,
성공한 리전의 결과와 실패한 리전의 에러를 함께 출력합니다.

명령어 구조:
    images list                 # 소유 AMI 조회 (전 리전)
    images copy                 # AMI를 다른 리전으로 복사
    images delete               # AMI deregister
    images modify               # 태그/시작 권한 변경
    images help <command>       # 명령어 도움말

종료 코드:
    0: 모든 리전 성공
    1: 하나 이상의 리전 실패 (부분 결과는 출력됨)
    2: 설정/입력 오류

Usage:
    $ images --region all --region-exclude us-west-2 list
    $ IMAGES_AWS_REGION=us-east-1,eu-west-1 images list --output json
    $ python -m awsimages list
"""

from __future__ import annotations

import logging
from typing import NoReturn

import click

from awsimages import __version__
from awsimages.config import load_config
from awsimages.exceptions import APICallError, ConfigError, MultiRegionError, ValidationError, format_error_for_user
from awsimages.parallel import FanOutResult
from awsimages.provider import AwsImages, help_text
from awsimages.region import resolve_regions

from .render import console, print_changes, print_tables, to_json

# WARNING 레벨로 설정하여 INFO 로그가 도구 출력에 섞이지 않도록 함
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

EXIT_REGION_FAILED = 1
EXIT_CONFIG_ERROR = 2


# =============================================================================
# 헬퍼
# =============================================================================


def _parse_tags(values: tuple[str, ...], option: str, require_value: bool = True) -> list[tuple[str, str | None]]:
    """key=value 형식 목록 파싱"""
    tags: list[tuple[str, str | None]] = []
    for raw in values:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not key or (require_value and not sep):
            raise click.BadParameter(f"expected key=value, got {raw!r}", param_hint=option)
        tags.append((key, value.strip() if sep else None))
    return tags


def _split_values(values: tuple[str, ...]) -> list[str]:
    """반복 옵션과 쉼표 구분을 모두 허용"""
    result: list[str] = []
    for value in values:
        result.extend(v.strip() for v in value.split(",") if v.strip())
    return result


def _fail(error: Exception, code: int) -> NoReturn:
    console.print(format_error_for_user(error), style="red", markup=False, highlight=False, soft_wrap=True)
    raise SystemExit(code)


def _build_images(ctx: click.Context) -> AwsImages:
    """설정을 병합하고 프로바이더 생성 (설정 오류 시 종료 코드 2)"""
    options = ctx.obj
    try:
        config = load_config(
            options.get("config_path"),
            region=options.get("region"),
            region_exclude=options.get("region_exclude"),
            access_key=options.get("access_key"),
            secret_key=options.get("secret_key"),
        )
        return AwsImages(config)
    except ConfigError as e:
        _fail(e, EXIT_CONFIG_ERROR)


def _finish(result: FanOutResult) -> None:
    """리전 에러 출력 후 종료 코드 결정"""
    try:
        result.raise_for_error()
    except MultiRegionError as e:
        _fail(e, EXIT_REGION_FAILED)


# =============================================================================
# CLI 그룹
# =============================================================================


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="images")
@click.option("--access-key", envvar="IMAGES_AWS_ACCESS_KEY", help="AWS Access Key")
@click.option("--secret-key", envvar="IMAGES_AWS_SECRET_KEY", help="AWS Secret Key")
@click.option("--region", envvar="IMAGES_AWS_REGION", help="AWS Region (comma separated, wildcards, 'all')")
@click.option("--region-exclude", envvar="IMAGES_AWS_REGION_EXCLUDE", help="AWS Region to be excluded")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (TOML or JSON, default: ~/.imagesrc)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    access_key: str | None,
    secret_key: str | None,
    region: str | None,
    region_exclude: str | None,
    config_path: str | None,
    debug: bool,
) -> None:
    """images - Manage AMIs across multiple AWS regions"""
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.obj = {
        "access_key": access_key,
        "secret_key": secret_key,
        "region": region,
        "region_exclude": region_exclude,
        "config_path": config_path,
    }


# =============================================================================
# 명령어
# =============================================================================


@cli.command("list")
@click.option("--owner", "owners", multiple=True, help="Image owner (default: self)")
@click.option("--name", "names", multiple=True, help="Image name filter (wildcards allowed)")
@click.option("--image-id", "image_ids", multiple=True, help="Image id")
@click.option("--output", type=click.Choice(["table", "json"]), default="table", show_default=True)
@click.pass_context
def list_cmd(
    ctx: click.Context,
    owners: tuple[str, ...],
    names: tuple[str, ...],
    image_ids: tuple[str, ...],
    output: str,
) -> None:
    """List AMI properties."""
    images = _build_images(ctx)
    result = images.list_images(
        owners=_split_values(owners) or ["self"],
        names=_split_values(names),
        image_ids=_split_values(image_ids),
    )

    if output == "json":
        click.echo(to_json(result))
    else:
        print_tables(result)

    _finish(result)


@cli.command("copy")
@click.option("--image", "image_id", required=True, help="Source image id")
@click.option("--source-region", required=True, help="Region the source image lives in")
@click.option("--to", "to_regions", multiple=True, help="Target regions (default: every configured region)")
@click.option("--name", default=None, help="Name of the new images")
@click.option("--desc", "description", default=None, help="Description of the new images")
@click.option("--dry-run", is_flag=True, help="Check permissions without copying")
@click.pass_context
def copy_cmd(
    ctx: click.Context,
    image_id: str,
    source_region: str,
    to_regions: tuple[str, ...],
    name: str | None,
    description: str | None,
    dry_run: bool,
) -> None:
    """Copy an image to other regions."""
    images = _build_images(ctx)

    targets = None
    if to_regions:
        targets = [r for r in resolve_regions(",".join(to_regions)) if r != source_region]

    try:
        result = images.copy_image(
            image_id,
            source_region,
            to_regions=targets,
            name=name,
            description=description,
            dry_run=dry_run,
        )
    except ValidationError as e:
        _fail(e, EXIT_CONFIG_ERROR)
    except APICallError as e:
        _fail(e, EXIT_REGION_FAILED)

    print_changes(result, "copied", dry_run=dry_run)
    _finish(result)


@cli.command("delete")
@click.option("--image-id", "image_ids", multiple=True, help="Image id to delete")
@click.option("--tag", "tags", multiple=True, help="Delete images with tag key=value")
@click.option("--dry-run", is_flag=True, help="Check permissions without deleting")
@click.pass_context
def delete_cmd(ctx: click.Context, image_ids: tuple[str, ...], tags: tuple[str, ...], dry_run: bool) -> None:
    """Deregister images."""
    parsed_tags = [(k, v or "") for k, v in _parse_tags(tags, "--tag")]
    images = _build_images(ctx)

    try:
        result = images.delete_images(
            image_ids=_split_values(image_ids),
            tags=parsed_tags,
            dry_run=dry_run,
        )
    except ValidationError as e:
        _fail(e, EXIT_CONFIG_ERROR)

    print_changes(result, "deleted", dry_run=dry_run)
    _finish(result)


@cli.command("modify")
@click.option("--image-id", "image_ids", multiple=True, required=True, help="Image id to modify")
@click.option("--create-tag", "create_tags", multiple=True, help="Create or replace tag key=value")
@click.option("--delete-tag", "delete_tags", multiple=True, help="Delete tag key or key=value")
@click.option("--add-launch-permission", "add_permissions", multiple=True, help="Account id or 'all'")
@click.option("--remove-launch-permission", "remove_permissions", multiple=True, help="Account id or 'all'")
@click.option("--dry-run", is_flag=True, help="Check permissions without modifying")
@click.pass_context
def modify_cmd(
    ctx: click.Context,
    image_ids: tuple[str, ...],
    create_tags: tuple[str, ...],
    delete_tags: tuple[str, ...],
    add_permissions: tuple[str, ...],
    remove_permissions: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Modify tags and launch permissions of images."""
    parsed_create = [(k, v or "") for k, v in _parse_tags(create_tags, "--create-tag")]
    parsed_delete = _parse_tags(delete_tags, "--delete-tag", require_value=False)
    images = _build_images(ctx)

    try:
        result = images.modify_images(
            _split_values(image_ids),
            create_tags=parsed_create,
            delete_tags=parsed_delete,
            add_launch_permissions=_split_values(add_permissions),
            remove_launch_permissions=_split_values(remove_permissions),
            dry_run=dry_run,
        )
    except ValidationError as e:
        _fail(e, EXIT_CONFIG_ERROR)

    print_changes(result, "modified", dry_run=dry_run)
    _finish(result)


@cli.command("help")
@click.argument("command", required=False)
@click.pass_context
def help_cmd(ctx: click.Context, command: str | None) -> None:
    """Show help for a command."""
    if not command:
        click.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())
        return
    click.echo(help_text(command))


def main() -> None:
    """Entry point for the images CLI."""
    cli()
