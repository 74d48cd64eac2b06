"""
tests/provider/test_aws_images.py - AwsImages 테스트 (MagicMock 클라이언트)
"""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import InvalidRegionError

from awsimages.config import AwsConfig
from awsimages.exceptions import APICallError, ConfigError, PartialRegionError, ValidationError
from awsimages.provider.images import AwsImages
from conftest import create_mock_client_error, make_image_dict

REGIONS = "us-east-1,eu-west-1,ap-northeast-2"


def _config(**overrides):
    values = {"region": REGIONS, "access_key": "AKIA", "secret_key": "secret"}
    values.update(overrides)
    return AwsConfig(**values)


@pytest.fixture
def clients():
    """리전 -> MagicMock EC2 클라이언트"""
    return {region: MagicMock(name=f"ec2-{region}") for region in REGIONS.split(",")}


@pytest.fixture
def images(clients, make_session):
    return AwsImages(_config(), session=make_session(clients))


class TestAwsImagesInit:
    """생성 및 설정 검증 테스트"""

    @pytest.mark.parametrize(
        "overrides,key",
        [
            ({"region": ""}, "region"),
            ({"access_key": ""}, "access_key"),
            ({"secret_key": ""}, "secret_key"),
            ({"region": "", "access_key": ""}, "region"),
        ],
    )
    def test_missing_config(self, overrides, key):
        """필수 설정 누락 시 클라이언트 생성 전에 ConfigError"""
        with patch("awsimages.provider.images.boto3.Session") as mock_session_cls:
            with pytest.raises(ConfigError) as exc_info:
                AwsImages(_config(**overrides))

        assert exc_info.value.config_key == key
        mock_session_cls.assert_not_called()

    def test_missing_access_key_message(self):
        with pytest.raises(ConfigError, match="AWS Access Key is not set"):
            AwsImages(_config(access_key=""))

    def test_everything_excluded(self):
        """해석된 리전이 비면 ConfigError"""
        with patch("awsimages.provider.images.boto3.Session") as mock_session_cls:
            with pytest.raises(ConfigError):
                AwsImages(_config(region_exclude="all"))

        mock_session_cls.assert_not_called()

    def test_static_credentials_session(self):
        with patch("awsimages.provider.images.boto3.Session") as mock_session_cls:
            images = AwsImages(_config())

        mock_session_cls.assert_called_once_with(aws_access_key_id="AKIA", aws_secret_access_key="secret")
        assert images.regions == ("us-east-1", "eu-west-1", "ap-northeast-2")

    def test_region_exclude(self, make_session):
        images = AwsImages(_config(region_exclude="eu-*"), session=make_session({}))

        assert images.regions == ("us-east-1", "ap-northeast-2")


class TestListImages:
    """list 테스트"""

    def test_owner_images(self, images, clients):
        for region, client in clients.items():
            client.describe_images.return_value = {
                "Images": [
                    make_image_dict(f"ami-{region}-2", "2024-02-01T00:00:00.000Z"),
                    make_image_dict(f"ami-{region}-1", "2024-01-01T00:00:00.000Z"),
                ]
            }

        result = images.owner_images()

        assert set(result.images) == set(clients)
        assert result.error is None
        for region, client in clients.items():
            client.describe_images.assert_called_once_with(Owners=["self"])
            assert [i["ImageId"] for i in result.images[region]] == [f"ami-{region}-1", f"ami-{region}-2"]

    def test_list_filters(self, images, clients):
        for client in clients.values():
            client.describe_images.return_value = {"Images": []}

        images.list_images(owners=["amazon"], names=["app-*"], image_ids=["ami-1"])

        clients["us-east-1"].describe_images.assert_called_once_with(
            Owners=["amazon"],
            Filters=[
                {"Name": "image-id", "Values": ["ami-1"]},
                {"Name": "name", "Values": ["app-*"]},
            ],
        )

    def test_partial_failure(self, images, clients):
        clients["us-east-1"].describe_images.return_value = {"Images": [make_image_dict("ami-1")]}
        clients["eu-west-1"].describe_images.side_effect = create_mock_client_error("AuthFailure", "nope")
        clients["ap-northeast-2"].describe_images.return_value = {"Images": []}

        result = images.owner_images()

        assert set(result.images) == {"us-east-1", "ap-northeast-2"}
        assert result.error.regions == ["eu-west-1"]
        assert "[eu-west-1]" in str(result.error)

    def test_repeated_calls_same_regions(self, images, clients):
        """같은 프로바이더로 두 번 조회해도 같은 리전 집합"""
        for client in clients.values():
            client.describe_images.return_value = {"Images": [make_image_dict("ami-1")]}

        first = images.owner_images()
        second = images.owner_images()

        assert set(first.images) == set(second.images) == set(clients)


class TestCopyImage:
    """copy 테스트"""

    def test_copy_to_all_other_regions(self, images, clients):
        """기본 대상은 소스를 제외한 모든 리전"""
        clients["us-east-1"].describe_images.return_value = {"Images": [make_image_dict("ami-src", name="app-v1")]}
        clients["eu-west-1"].copy_image.return_value = {"ImageId": "ami-eu"}
        clients["ap-northeast-2"].copy_image.return_value = {"ImageId": "ami-ap"}

        result = images.copy_image("ami-src", "us-east-1")

        assert set(result.images) == {"eu-west-1", "ap-northeast-2"}
        assert result.error is None
        clients["us-east-1"].copy_image.assert_not_called()
        clients["eu-west-1"].copy_image.assert_called_once_with(
            DryRun=False,
            SourceImageId="ami-src",
            SourceRegion="us-east-1",
            Name="app-v1",
        )
        assert result.images["eu-west-1"] == [
            {"ImageId": "ami-eu", "Name": "app-v1", "SourceImageId": "ami-src", "SourceRegion": "us-east-1"}
        ]

    def test_explicit_name_skips_lookup(self, images, clients):
        clients["eu-west-1"].copy_image.return_value = {"ImageId": "ami-eu"}

        images.copy_image("ami-src", "us-east-1", to_regions=["eu-west-1"], name="custom", description="desc")

        clients["us-east-1"].describe_images.assert_not_called()
        clients["eu-west-1"].copy_image.assert_called_once_with(
            DryRun=False,
            SourceImageId="ami-src",
            SourceRegion="us-east-1",
            Name="custom",
            Description="desc",
        )
        clients["ap-northeast-2"].copy_image.assert_not_called()

    def test_nameless_source_image(self, images, clients):
        clients["us-east-1"].describe_images.return_value = {"Images": [{"ImageId": "ami-src"}]}
        clients["eu-west-1"].copy_image.return_value = {"ImageId": "ami-eu"}

        result = images.copy_image("ami-src", "us-east-1", to_regions=["eu-west-1"])

        assert result.images["eu-west-1"][0]["Name"] == "copy-of-ami-src-from-us-east-1"

    def test_source_region_outside_configuration(self, images, clients):
        """설정 밖의 소스 리전은 별도 클라이언트로 이름 조회"""
        clients["eu-west-1"].copy_image.return_value = {"ImageId": "ami-eu"}
        images._session.client("ec2", region_name="sa-east-1").describe_images.return_value = {
            "Images": [make_image_dict("ami-src", name="from-sa")]
        }

        result = images.copy_image("ami-src", "sa-east-1", to_regions=["eu-west-1"])

        assert result.images["eu-west-1"][0]["Name"] == "from-sa"

    def test_malformed_source_region(self, clients, make_session):
        """형식이 잘못된 소스 리전은 입력 오류"""
        session = make_session(clients)
        images = AwsImages(_config(), session=session)
        session.client.side_effect = InvalidRegionError(region_name="us_east_1")

        with pytest.raises(ValidationError) as exc_info:
            images.copy_image("ami-src", "us_east_1", to_regions=["eu-west-1"])

        assert exc_info.value.field == "source_region"
        clients["eu-west-1"].copy_image.assert_not_called()

    def test_source_image_not_found(self, images, clients):
        clients["us-east-1"].describe_images.return_value = {"Images": []}

        with pytest.raises(APICallError) as exc_info:
            images.copy_image("ami-missing", "us-east-1")

        assert exc_info.value.error_code == "InvalidAMIID.NotFound"
        assert exc_info.value.region == "us-east-1"
        clients["eu-west-1"].copy_image.assert_not_called()

    def test_source_lookup_client_error(self, images, clients):
        clients["us-east-1"].describe_images.side_effect = create_mock_client_error("InvalidAMIID.Malformed")

        with pytest.raises(APICallError) as exc_info:
            images.copy_image("bad", "us-east-1")

        assert exc_info.value.error_code == "InvalidAMIID.Malformed"

    def test_no_target_regions(self, images):
        with pytest.raises(ValidationError):
            images.copy_image("ami-src", "us-east-1", to_regions=[], name="x")

    def test_unconfigured_target_is_region_error(self, images, clients):
        clients["eu-west-1"].copy_image.return_value = {"ImageId": "ami-eu"}

        result = images.copy_image("ami-src", "us-east-1", to_regions=["eu-west-1", "sa-east-1"], name="x")

        assert set(result.images) == {"eu-west-1"}
        assert result.error.regions == ["sa-east-1"]

    def test_dry_run(self, images, clients):
        """DryRunOperation 응답은 성공으로 처리"""
        clients["eu-west-1"].copy_image.side_effect = create_mock_client_error("DryRunOperation", "would succeed")
        clients["ap-northeast-2"].copy_image.side_effect = create_mock_client_error("UnauthorizedOperation")

        result = images.copy_image("ami-src", "us-east-1", name="x", dry_run=True)

        assert result.images["eu-west-1"] == [
            {"ImageId": None, "Name": "x", "SourceImageId": "ami-src", "SourceRegion": "us-east-1", "DryRun": True}
        ]
        assert result.error.regions == ["ap-northeast-2"]
        assert clients["eu-west-1"].copy_image.call_args.kwargs["DryRun"] is True


class TestDeleteImages:
    """delete 테스트"""

    def test_requires_ids_or_tags(self, images):
        with pytest.raises(ValidationError):
            images.delete_images()

    def test_delete_in_each_region(self, images, clients):
        """이미지가 있는 리전에서만 deregister"""
        clients["us-east-1"].describe_images.return_value = {"Images": [make_image_dict("ami-1")]}
        clients["eu-west-1"].describe_images.return_value = {"Images": []}
        clients["ap-northeast-2"].describe_images.return_value = {
            "Images": [make_image_dict("ami-2"), make_image_dict("ami-3")]
        }

        result = images.delete_images(image_ids=["ami-1", "ami-2", "ami-3"])

        assert result.error is None
        assert result.images["eu-west-1"] == []
        clients["us-east-1"].deregister_image.assert_called_once_with(DryRun=False, ImageId="ami-1")
        clients["eu-west-1"].deregister_image.assert_not_called()
        assert clients["ap-northeast-2"].deregister_image.call_count == 2
        clients["us-east-1"].describe_images.assert_called_once_with(
            Owners=["self"],
            Filters=[{"Name": "image-id", "Values": ["ami-1", "ami-2", "ami-3"]}],
        )

    def test_delete_by_tag(self, images, clients):
        for client in clients.values():
            client.describe_images.return_value = {"Images": []}

        images.delete_images(tags=[("env", "dev")])

        clients["eu-west-1"].describe_images.assert_called_once_with(
            Owners=["self"],
            Filters=[{"Name": "tag:env", "Values": ["dev"]}],
        )

    def test_dry_run(self, images, clients):
        for client in clients.values():
            client.describe_images.return_value = {"Images": [make_image_dict("ami-1")]}
            client.deregister_image.side_effect = create_mock_client_error("DryRunOperation")

        result = images.delete_images(image_ids=["ami-1"], dry_run=True)

        assert result.error is None
        assert result.image_count == 3

    def test_failure_in_one_region(self, images, clients):
        for client in clients.values():
            client.describe_images.return_value = {"Images": [make_image_dict("ami-1")]}
        clients["eu-west-1"].deregister_image.side_effect = create_mock_client_error("InvalidAMIID.Unavailable")

        result = images.delete_images(image_ids=["ami-1"])

        assert set(result.images) == {"us-east-1", "ap-northeast-2"}
        assert result.error.by_region()["eu-west-1"].error_code == "InvalidAMIID.Unavailable"
        assert result.error.by_region()["eu-west-1"].completed == ()

    def test_partial_deregister_reports_completed(self, images, clients):
        """두 번째 deregister가 실패해도 이미 지워진 이미지를 에러에 남김"""
        for client in clients.values():
            client.describe_images.return_value = {"Images": []}
        clients["eu-west-1"].describe_images.return_value = {
            "Images": [make_image_dict("ami-1"), make_image_dict("ami-2")]
        }
        clients["eu-west-1"].deregister_image.side_effect = [
            {},
            create_mock_client_error("InvalidAMIID.Unavailable", "in use"),
        ]

        result = images.delete_images(image_ids=["ami-1", "ami-2"])

        error = result.error.by_region()["eu-west-1"]
        assert error.completed == ("ami-1",)
        assert error.error_code == "InvalidAMIID.Unavailable"
        assert error.message == "in use"
        assert isinstance(error.original_exception, PartialRegionError)
        assert "completed before failure: ami-1" in str(result.error)
        assert "eu-west-1" not in result.images


class TestModifyImages:
    """modify 테스트"""

    def test_requires_image_ids(self, images):
        with pytest.raises(ValidationError):
            images.modify_images([], create_tags=[("a", "b")])

    def test_requires_change(self, images):
        with pytest.raises(ValidationError):
            images.modify_images(["ami-1"])

    def test_modify_tags_and_permissions(self, images, clients):
        clients["us-east-1"].describe_images.return_value = {"Images": [make_image_dict("ami-1")]}
        clients["eu-west-1"].describe_images.return_value = {"Images": []}
        clients["ap-northeast-2"].describe_images.return_value = {"Images": []}

        result = images.modify_images(
            ["ami-1"],
            create_tags=[("team", "infra")],
            delete_tags=[("old", None), ("env", "dev")],
            add_launch_permissions=["111122223333"],
            remove_launch_permissions=["all"],
        )

        assert result.error is None
        client = clients["us-east-1"]
        client.create_tags.assert_called_once_with(
            DryRun=False, Resources=["ami-1"], Tags=[{"Key": "team", "Value": "infra"}]
        )
        client.delete_tags.assert_called_once_with(
            DryRun=False, Resources=["ami-1"], Tags=[{"Key": "old"}, {"Key": "env", "Value": "dev"}]
        )
        client.modify_image_attribute.assert_called_once_with(
            DryRun=False,
            ImageId="ami-1",
            LaunchPermission={"Add": [{"UserId": "111122223333"}], "Remove": [{"Group": "all"}]},
        )
        clients["eu-west-1"].create_tags.assert_not_called()
        assert result.images["eu-west-1"] == []

    def test_tags_only(self, images, clients):
        for client in clients.values():
            client.describe_images.return_value = {"Images": [make_image_dict("ami-1")]}

        images.modify_images(["ami-1"], create_tags=[("team", "infra")])

        for client in clients.values():
            client.modify_image_attribute.assert_not_called()
            client.delete_tags.assert_not_called()

    def test_partial_modify_reports_completed(self, images, clients):
        """태그 변경 후 권한 변경이 실패하면 적용된 태그 단계를 에러에 남김"""
        for client in clients.values():
            client.describe_images.return_value = {"Images": []}
        client = clients["ap-northeast-2"]
        client.describe_images.return_value = {"Images": [make_image_dict("ami-1"), make_image_dict("ami-2")]}
        client.modify_image_attribute.side_effect = [
            {},
            create_mock_client_error("UnauthorizedOperation", "denied"),
        ]

        result = images.modify_images(
            ["ami-1", "ami-2"],
            create_tags=[("team", "infra")],
            add_launch_permissions=["111122223333"],
        )

        error = result.error.by_region()["ap-northeast-2"]
        assert error.completed == ("create_tags ami-1 ami-2", "launch_permission ami-1")
        assert error.error_code == "UnauthorizedOperation"
        assert set(result.images) == {"us-east-1", "eu-west-1"}

    def test_first_step_failure_has_no_completed(self, images, clients):
        for client in clients.values():
            client.describe_images.return_value = {"Images": [make_image_dict("ami-1")]}
        clients["us-east-1"].create_tags.side_effect = create_mock_client_error("UnauthorizedOperation")

        result = images.modify_images(["ami-1"], create_tags=[("team", "infra")])

        error = result.error.by_region()["us-east-1"]
        assert error.completed == ()
        assert str(error) == "[us-east-1] modify_images: UnauthorizedOperation - Test error"


class TestHelp:
    """help 테스트"""

    def test_unknown_command(self):
        assert AwsImages.help("nope") == "no help found for command nope"

    def test_known_command(self, images):
        assert "Usage: images copy" in images.help("copy")
