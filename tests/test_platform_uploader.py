"""Tests for the shared uploader flow and the platform factory."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from common.errors import ArgumentError, HttpError, TransportError
from constants import PlatformType, VersionType
from platforms import create_platform_uploader
from platforms.base import GenericPlatformUploader
from platforms.curseforge.uploader import CurseForgeUploader
from platforms.github.uploader import GitHubUploader
from platforms.models import UploadedFile, UploadReport, UploadRequest
from platforms.modrinth.uploader import ModrinthUploader

REPORT = UploadReport(project_id="P", version_id="V", url="https://example.test/V",
                      files=(UploadedFile(id=1, name="mod.jar", url="https://example.test/mod.jar"),))


class StubUploader(GenericPlatformUploader):
    platform = PlatformType.MODRINTH

    def __init__(self, outcomes, **kwargs):
        super().__init__(session=MagicMock(), **kwargs)
        self.outcomes = list(outcomes)
        self.requests = []

    def upload_core(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def _request(**changes):
    return UploadRequest(token="t", files=("mod.jar",), retry_delay=0).with_changes(**changes)


class TestGenericPlatformUploader:
    """Outer whole-operation retry."""

    def test_soft_errors_are_retried(self, make_response):
        """Test soft errors are retried."""
        uploader = StubUploader([HttpError(make_response(503, b"busy")), REPORT])

        assert uploader.upload(_request()) is REPORT
        assert len(uploader.requests) == 2

    def test_retries_are_bounded_by_the_request(self, make_response):
        """Test retries are bounded by the request."""
        errors = [HttpError(make_response(500, b"x")) for _ in range(3)]
        uploader = StubUploader(errors)

        with pytest.raises(HttpError):
            uploader.upload(_request(retry_attempts=3))

        assert len(uploader.requests) == 3

    def test_hard_errors_are_not_retried(self, make_response):
        """Test hard errors are not retried."""
        uploader = StubUploader([HttpError(make_response(400, b"bad")), REPORT])

        with pytest.raises(HttpError):
            uploader.upload(_request())

        assert len(uploader.requests) == 1

    def test_transport_errors_are_not_retried(self):
        """Test transport errors are not retried."""
        uploader = StubUploader([TransportError("reset"), REPORT])

        with pytest.raises(TransportError):
            uploader.upload(_request())

    @patch("common.retry.time.sleep")
    def test_waits_the_requested_delay(self, mock_sleep, make_response):
        """Test waits the requested delay."""
        uploader = StubUploader([HttpError(make_response(429, b"slow down")), REPORT])

        uploader.upload(_request(retry_delay=2.5))

        mock_sleep.assert_called_once_with(2.5)

    def test_logs_progress_to_the_given_logger(self, make_response):
        """Test logs progress to the given logger."""
        logger = MagicMock(spec=logging.Logger)
        uploader = StubUploader([HttpError(make_response(503, b"busy")), REPORT], logger=logger)

        uploader.upload(_request())

        messages = [c.args[0] for c in logger.info.call_args_list]
        assert "Publishing assets to %s" in messages
        assert "Facing difficulties, republishing assets to %s in %s seconds" in messages
        assert any(m.startswith("Successfully published assets") for m in messages)

    def test_recovered_soft_errors_are_not_logged_as_errors(self, make_response, caplog):
        """A retry that ends in success leaves no ERROR records behind."""
        uploader = StubUploader([HttpError(make_response(503, b"busy")), REPORT])

        with caplog.at_level(logging.DEBUG):
            assert uploader.upload(_request()) is REPORT

        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert any("503" in r.getMessage() for r in caplog.records if r.levelno == logging.INFO)

    @pytest.mark.parametrize("changes,message", [
        ({"token": None}, "A token is required to upload files to Modrinth."),
        ({"token": ""}, "A token is required"),
        ({"files": ()}, "No upload files were specified for Modrinth."),
    ])
    def test_validation(self, changes, message):
        """Test request validation before upload."""
        uploader = StubUploader([REPORT])

        with pytest.raises(ArgumentError, match=message):
            uploader.upload(_request(**changes))

        assert uploader.requests == []

    def test_request_repr_masks_token(self):
        """Test request repr masks token."""
        request = _request(token="very-secret", version_type=VersionType.BETA)

        assert "very-secret" not in repr(request)
        assert "token='***'" not in repr(request)
        assert "token=***" in repr(request)


class TestReport:
    """Uniform report shape."""

    def test_to_dict(self):
        """Test report serialization."""
        assert REPORT.to_dict() == {
            "id": "P",
            "version": "V",
            "url": "https://example.test/V",
            "files": [{"id": 1, "name": "mod.jar", "url": "https://example.test/mod.jar"}],
        }


class TestCreatePlatformUploader:
    """Factory lookup."""

    @pytest.mark.parametrize("name,cls", [
        ("modrinth", ModrinthUploader),
        ("CurseForge", CurseForgeUploader),
        (PlatformType.GITHUB, GitHubUploader),
    ])
    def test_known_platforms(self, name, cls):
        """Test known platforms."""
        assert isinstance(create_platform_uploader(name, session=MagicMock()), cls)

    def test_unknown_platform(self):
        """Test unknown platform."""
        with pytest.raises(ValueError, match="hangar"):
            create_platform_uploader("hangar")

    def test_friendly_names(self):
        """Test friendly names."""
        assert [p.friendly_name for p in PlatformType] == ["Modrinth", "CurseForge", "GitHub"]
        assert PlatformType.parse("Curse-Forge") is PlatformType.CURSEFORGE
        assert PlatformType.parse("gitlab") is None

    def test_version_type_from_file_name(self):
        """Test version type from file name."""
        assert VersionType.from_file_name("mod-1.0.0-alpha.2.jar") is VersionType.ALPHA
        assert VersionType.from_file_name("mod-1.0.0+beta.jar") is VersionType.BETA
        assert VersionType.from_file_name("mod-1.0.0.jar") is VersionType.RELEASE
