"""Tests for the fallback AWS profile files."""

import stat
from configparser import ConfigParser

import pytest

from cache_credentials.models import CredentialSet
from cache_credentials.profile_files import write_profile_files


def mode(path):
    return stat.S_IMODE(path.stat().st_mode)


def read_ini(path):
    config = ConfigParser(interpolation=None)
    config.read(path)
    return config


class TestWriteProfileFiles:
    """Test writing ~/.aws/credentials and ~/.aws/config."""

    def test_writes_default_profile(self, tmp_path, credentials):
        aws_dir = write_profile_files(tmp_path / ".aws", credentials, "eu-central-1")

        creds = read_ini(aws_dir / "credentials")
        assert dict(creds["default"]) == {
            "aws_access_key_id": "AKIA_TEST",
            "aws_secret_access_key": "secret_test",
            "aws_session_token": "token_test",
        }
        assert dict(read_ini(aws_dir / "config")["default"]) == {"region": "eu-central-1"}

    def test_exact_layout(self, tmp_path):
        credentials = CredentialSet(access_key_id="A", secret_access_key="B", session_token="C")

        aws_dir = write_profile_files(tmp_path / ".aws", credentials, "eu-central-1")

        assert (aws_dir / "credentials").read_text() == (
            "[default]\naws_access_key_id = A\naws_secret_access_key = B\naws_session_token = C\n\n"
        )
        assert (aws_dir / "config").read_text() == "[default]\nregion = eu-central-1\n\n"

    def test_permissions(self, tmp_path, credentials):
        aws_dir = write_profile_files(tmp_path / ".aws", credentials, "eu-central-1")

        assert mode(aws_dir) == 0o700
        assert mode(aws_dir / "credentials") == 0o600
        assert mode(aws_dir / "config") == 0o600

    def test_tightens_existing_directory(self, tmp_path, credentials):
        aws_dir = tmp_path / ".aws"
        aws_dir.mkdir(mode=0o755)
        aws_dir.chmod(0o755)

        write_profile_files(aws_dir, credentials, "eu-central-1")

        assert mode(aws_dir) == 0o700

    def test_keeps_other_profiles(self, tmp_path, credentials):
        aws_dir = tmp_path / ".aws"
        aws_dir.mkdir()
        (aws_dir / "credentials").write_text(
            "[default]\naws_access_key_id = OLD\n\n[other]\naws_access_key_id = OTHER\n"
        )
        (aws_dir / "config").write_text("[profile other]\nregion = us-east-1\n")

        write_profile_files(aws_dir, credentials, "eu-central-1")

        creds = read_ini(aws_dir / "credentials")
        assert creds["default"]["aws_access_key_id"] == "AKIA_TEST"
        assert creds["other"]["aws_access_key_id"] == "OTHER"
        config = read_ini(aws_dir / "config")
        assert config["profile other"]["region"] == "us-east-1"
        assert config["default"]["region"] == "eu-central-1"

    @pytest.mark.parametrize(
        "content",
        [
            "aws_access_key_id = NO_SECTION\n",
            "[default]\naws_access_key_id = A\n[default]\naws_access_key_id = B\n",
        ],
    )
    def test_replaces_unparseable_file(self, tmp_path, credentials, content):
        aws_dir = tmp_path / ".aws"
        aws_dir.mkdir()
        (aws_dir / "credentials").write_text(content)

        write_profile_files(aws_dir, credentials, "eu-central-1")

        creds = read_ini(aws_dir / "credentials")
        assert creds.sections() == ["default"]
        assert creds["default"]["aws_access_key_id"] == "AKIA_TEST"
        assert read_ini(aws_dir / "config")["default"]["region"] == "eu-central-1"

    def test_values_with_special_characters(self, tmp_path):
        credentials = CredentialSet(access_key_id="A", secret_access_key="b%c;d#e", session_token="tok/+=")

        aws_dir = write_profile_files(tmp_path / ".aws", credentials, "eu-central-1")

        creds = read_ini(aws_dir / "credentials")
        assert creds["default"]["aws_secret_access_key"] == "b%c;d#e"
        assert creds["default"]["aws_session_token"] == "tok/+="

    def test_no_temp_files_left(self, tmp_path, credentials):
        aws_dir = write_profile_files(tmp_path / ".aws", credentials, "eu-central-1")

        assert sorted(p.name for p in aws_dir.iterdir()) == ["config", "credentials"]

    def test_refuses_incomplete_credentials(self, tmp_path):
        credentials = CredentialSet(access_key_id="A", secret_access_key="", session_token="C")

        with pytest.raises(ValueError, match="incomplete"):
            write_profile_files(tmp_path / ".aws", credentials, "eu-central-1")

        assert not (tmp_path / ".aws").exists()
