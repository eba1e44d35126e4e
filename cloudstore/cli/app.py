"""Cloudstore CLI entry point."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from tqdm import tqdm

from cloudstore import __version__
from cloudstore.client.models import FolderMetadata
from cloudstore.config.client_options import ClientOptions
from cloudstore.config.config import ConfigManager
from cloudstore.config.helpers import format_bytes
from cloudstore.config.profiles import (
    ProfileAlreadyExist,
    ProfileManager,
    ProfileNotFound,
)
from cloudstore.const import ROOT_FOLDER_ID
from cloudstore.exceptions import StorageError
from cloudstore.storage_client import StorageClient

app = typer.Typer(add_completion=False, help="Cloudstore command line interface.")
profile_app = typer.Typer(add_completion=False, help="Manage client profiles.")
app.add_typer(profile_app, name="profile")

_PROFILE_OPTION = typer.Option(
    None, "--profile", "-p", help="Profile providing the client options."
)


def _version_callback(value: bool) -> bool:
    if value:
        typer.echo(__version__)
        raise typer.Exit()
    return value


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show the cloudstore version and exit.",
        callback=_version_callback,
        is_eager=True,
        is_flag=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Handle global CLI options."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


def _load_options(profile: str | None) -> ClientOptions:
    try:
        return ConfigManager(ProfileManager(), profile).resolve_effective_config()
    except ProfileNotFound as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def build_client(profile: str | None) -> StorageClient:
    """Create the storage client used by the commands."""
    return StorageClient(_load_options(profile))


def _fail(error: StorageError) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(code=1)


@app.command("ls")
def list_folder(
    folder_id: str = typer.Argument(ROOT_FOLDER_ID, help="Folder to list."),
    profile: str | None = _PROFILE_OPTION,
) -> None:
    """List the content of a folder."""
    client = build_client(profile)
    try:
        for item in client.list_folder(folder_id):
            if isinstance(item, FolderMetadata):
                typer.echo(f"{item.id}\t{'<dir>':>12}\t{item.name}/")
            else:
                typer.echo(f"{item.id}\t{item.size:>12}\t{item.name}")
    except StorageError as error:
        raise _fail(error) from error


@app.command("upload")
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    parent_id: str = typer.Option(ROOT_FOLDER_ID, "--parent", help="Target folder."),
    name: str | None = typer.Option(None, "--name", help="Remote file name."),
    resume: str | None = typer.Option(
        None, "--resume", help="Session id of an interrupted upload to resume."
    ),
    no_finalize: bool = typer.Option(
        False, "--no-finalize", help="Leave the upload open and print its session id."
    ),
    profile: str | None = _PROFILE_OPTION,
) -> None:
    """Upload a local file."""
    client = build_client(profile)
    try:
        with tqdm(
            total=path.stat().st_size, unit="B", unit_scale=True, desc=path.name
        ) as pbar:
            result = client.upload_file(
                path,
                parent_id=parent_id,
                name=name,
                session_id=resume,
                finalize=not no_finalize,
                on_progress=pbar.update,
            )
    except StorageError as error:
        raise _fail(error) from error

    if no_finalize:
        session_id = result.resumable_session_id
        typer.echo(f"Upload suspended. Resume with --resume {session_id}")
    else:
        typer.echo(f"Uploaded {result.name} ({result.id})")


@app.command("download")
def download(
    file_id: str = typer.Argument(..., help="File to download."),
    destination: Path = typer.Argument(..., help="Local path to write."),
    profile: str | None = _PROFILE_OPTION,
) -> None:
    """Download a file."""
    client = build_client(profile)
    try:
        metadata = client.get_file_metadata(file_id)
        with tqdm(
            total=metadata.size, unit="B", unit_scale=True, desc=metadata.name
        ) as pbar:
            written = client.download_file(
                file_id, destination, on_progress=pbar.update
            )
    except StorageError as error:
        raise _fail(error) from error
    typer.echo(f"Downloaded {format_bytes(written)} to {destination}")


@app.command("quota")
def quota(profile: str | None = _PROFILE_OPTION) -> None:
    """Show the storage usage of the account."""
    client = build_client(profile)
    try:
        storage_quota = client.get_quota()
    except StorageError as error:
        raise _fail(error) from error
    total = format_bytes(storage_quota.total) if storage_quota.total else "unlimited"
    typer.echo(f"Used {format_bytes(storage_quota.usage)} of {total}")


@profile_app.command("list")
def profile_list() -> None:
    """List the stored profiles."""
    for name in ProfileManager().list_profiles():
        typer.echo(name)


@profile_app.command("create")
def profile_create(
    name: str = typer.Argument(..., help="Name of the new profile."),
    upload_buffer_size: str | None = typer.Option(
        None, "--upload-buffer-size", help="Upload buffer size, e.g. 16mb."
    ),
    maximum_retry_period: float | None = typer.Option(
        None, "--max-retry-period", help="Seconds to keep retrying."
    ),
) -> None:
    """Create a profile with default options."""
    values = {
        "upload_buffer_size": upload_buffer_size,
        "maximum_retry_period": maximum_retry_period,
    }
    try:
        ProfileManager().create_profile(
            name, {key: value for key, value in values.items() if value is not None}
        )
    except ProfileAlreadyExist as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Created profile {name}")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(..., help="Profile to show.")) -> None:
    """Print the options stored in a profile."""
    try:
        options = ProfileManager().get_profile(name)
    except ProfileNotFound as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    for key, value in options.model_dump(exclude={"access_token"}).items():
        typer.echo(f"{key}: {value}")


def main() -> None:
    """CLI entrypoint for the cloudstore command."""
    app()


if __name__ == "__main__":
    main()
