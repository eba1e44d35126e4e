from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from cloudstore import __version__
from cloudstore.cli import app as cli_app
from cloudstore.cli.app import app
from cloudstore.client.models import FileMetadata, FolderMetadata, StorageQuota
from cloudstore.exceptions import StatusCode, StorageError

runner = CliRunner()
ENV = {"TERM": "dumb", "NO_COLOR": "1", "RICH_DISABLE": "1"}


@pytest.fixture
def fake_client(monkeypatch) -> MagicMock:
    """Replace the storage client built by the commands."""
    client = MagicMock()
    monkeypatch.setattr(cli_app, "build_client", lambda profile: client)
    return client


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point the profile store at a temporary home directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


def test_cloudstore_cli_version() -> None:
    result = runner.invoke(app, ["--version"], color=False, env=ENV)

    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_cloudstore_cli_help_includes_subcommands() -> None:
    result = runner.invoke(app, ["--help"], color=False, env=ENV)

    assert result.exit_code == 0
    for command in ("ls", "upload", "download", "quota", "profile"):
        assert command in result.output


def test_ls_prints_folders_and_files(fake_client) -> None:
    fake_client.list_folder.return_value = [
        FolderMetadata(id="dir-1", name="photos"),
        FileMetadata(id="file-1", name="notes.txt", size=42),
    ]

    result = runner.invoke(app, ["ls", "dir-0"], color=False, env=ENV)

    assert result.exit_code == 0
    fake_client.list_folder.assert_called_once_with("dir-0")
    lines = result.output.splitlines()
    assert lines[0].startswith("dir-1") and lines[0].endswith("photos/")
    assert "<dir>" in lines[0]
    assert lines[1].startswith("file-1") and "42" in lines[1]


def test_quota(fake_client) -> None:
    fake_client.get_quota.return_value = StorageQuota(total=2048, usage=512)

    result = runner.invoke(app, ["quota"], color=False, env=ENV)

    assert result.exit_code == 0
    assert "Used 512 B of 2.0 KiB" in result.output


def test_storage_error_exits_with_code_one(fake_client) -> None:
    fake_client.get_quota.side_effect = StorageError(
        StatusCode.UNAUTHENTICATED, "get_quota failed with HTTP 401"
    )

    result = runner.invoke(app, ["quota"], color=False, env=ENV)

    assert result.exit_code == 1
    assert "get_quota failed with HTTP 401" in result.output


def test_upload_prints_uploaded_file(fake_client, tmp_path) -> None:
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF")
    fake_client.upload_file.return_value = FileMetadata(id="file-7", name="report.pdf")

    result = runner.invoke(
        app, ["upload", str(path), "--parent", "dir-1"], color=False, env=ENV
    )

    assert result.exit_code == 0
    assert "Uploaded report.pdf (file-7)" in result.output
    kwargs = fake_client.upload_file.call_args.kwargs
    assert kwargs["parent_id"] == "dir-1"
    assert kwargs["finalize"] is True
    assert kwargs["session_id"] is None


def test_upload_without_finalize_prints_session(fake_client, tmp_path) -> None:
    path = tmp_path / "video.mp4"
    path.write_bytes(b"\x00" * 10)
    fake_client.upload_file.return_value = MagicMock(
        resumable_session_id="https://upload.test/session-9"
    )

    result = runner.invoke(
        app,
        ["upload", str(path), "--no-finalize", "--resume", "https://upload.test/s"],
        color=False,
        env=ENV,
    )

    assert result.exit_code == 0
    assert "Resume with --resume https://upload.test/session-9" in result.output
    kwargs = fake_client.upload_file.call_args.kwargs
    assert kwargs["finalize"] is False
    assert kwargs["session_id"] == "https://upload.test/s"


def test_download(fake_client, tmp_path) -> None:
    fake_client.get_file_metadata.return_value = FileMetadata(
        id="file-1", name="data.bin", size=2048
    )
    fake_client.download_file.return_value = 2048
    destination = tmp_path / "data.bin"

    result = runner.invoke(
        app, ["download", "file-1", str(destination)], color=False, env=ENV
    )

    assert result.exit_code == 0
    assert "Downloaded 2.0 KiB" in result.output
    assert fake_client.download_file.call_args.args[:2] == ("file-1", destination)


def test_profile_create_list_and_show(home) -> None:
    created = runner.invoke(
        app,
        ["profile", "create", "fast", "--upload-buffer-size", "16mb"],
        color=False,
        env=ENV,
    )
    listed = runner.invoke(app, ["profile", "list"], color=False, env=ENV)
    shown = runner.invoke(app, ["profile", "show", "fast"], color=False, env=ENV)

    assert created.exit_code == 0
    assert listed.output.split() == ["fast"]
    assert f"upload_buffer_size: {16 * 1024**2}" in shown.output
    assert "access_token" not in shown.output


def test_profile_create_twice_fails(home) -> None:
    runner.invoke(app, ["profile", "create", "fast"], color=False, env=ENV)

    result = runner.invoke(app, ["profile", "create", "fast"], color=False, env=ENV)

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_unknown_profile_fails(home) -> None:
    result = runner.invoke(app, ["quota", "--profile", "nope"], color=False, env=ENV)

    assert result.exit_code == 1
    assert "not found" in result.output
