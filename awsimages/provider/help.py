"""
awsimages/provider/help.py - 명령어별 도움말

명령어 이름으로 정적 도움말을 조회합니다.
알 수 없는 명령어는 예외 대신 안내 문자열을 반환합니다.
"""

from __future__ import annotations

GLOBAL_HELP = """
  --access-key      "..."       AWS Access Key (env: IMAGES_AWS_ACCESS_KEY)
  --secret-key      "..."       AWS Secret Key (env: IMAGES_AWS_SECRET_KEY)
  --region          "..."       AWS Region (env: IMAGES_AWS_REGION)
  --region-exclude  "..."       AWS Region to be excluded (env: IMAGES_AWS_REGION_EXCLUDE)
"""

LIST_HELP = """Usage: images list [options]

  List AMI properties of every configured region.

Options:
  --owner           "..."       Image owner (default: self, repeatable)
  --name            "..."       Image name filter, wildcards allowed (repeatable)
  --image-id        "..."       Image id to list (repeatable)
  --output          "..."       Output mode: table or json (default: table)
"""

COPY_HELP = """Usage: images copy [options]

  Copy an image from its source region to other regions.

Options:
  --image           "..."       Source image id (required)
  --source-region   "..."       Region the source image lives in (required)
  --to              "..."       Target regions (default: every configured region but the source)
  --name            "..."       Name of the new images (default: source image name)
  --desc            "..."       Description of the new images
  --dry-run                     Check permissions without copying
"""

DELETE_HELP = """Usage: images delete [options]

  Deregister images owned by the account, in whichever region they live.

Options:
  --image-id        "..."       Image id to delete (repeatable)
  --tag             "..."       Delete images with tag key=value (repeatable)
  --dry-run                     Check permissions without deleting
"""

MODIFY_HELP = """Usage: images modify [options]

  Modify tags and launch permissions of images.

Options:
  --image-id                    "..."   Image id to modify (required, repeatable)
  --create-tag                  "..."   Create or replace tag key=value (repeatable)
  --delete-tag                  "..."   Delete tag key or key=value (repeatable)
  --add-launch-permission       "..."   Grant launch permission to an account id, or "all" (repeatable)
  --remove-launch-permission    "..."   Revoke launch permission from an account id, or "all" (repeatable)
  --dry-run                             Check permissions without modifying
"""

COMMAND_HELP = {
    "list": LIST_HELP,
    "copy": COPY_HELP,
    "delete": DELETE_HELP,
    "modify": MODIFY_HELP,
}


def help_text(command: str) -> str:
    """명령어 도움말 반환

    Args:
        command: list / copy / delete / modify

    Returns:
        명령어 도움말 + 공통 옵션, 알 수 없는 명령어면 안내 문자열
    """
    text = COMMAND_HELP.get(command)
    if text is None:
        return f"no help found for command {command}"
    return text + GLOBAL_HELP
