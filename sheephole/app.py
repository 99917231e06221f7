from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from pathlib import Path
import signal
import sys

import click
from PySide6.QtCore import QCoreApplication

from core.config import AppConfig
from core.installation.catalog import Catalog
from core.installation.service import SiteService
from core.installation.workers import InstallRunner
from core.logging import setup_logging
from core.loopback.channel import InstallRequest, InstallRequestChannel
from core.loopback.pump import InstallRequestPump
from core.loopback.server import LoopbackServer
from core.paths import ensure_runtime_directories
from core.profiles.caching_manager import CachingProfileManager
from core.profiles.profile_manager import ProfileManager
from core.remote.installer import RemoteInstaller
from core.remote.probe import RemoteInstallationProbe
from core.remote.session_factory import create_session_factory
from storage.db import DatabaseManager
from storage.repositories import ProfileRepository


@dataclass(slots=True)
class AppContext:
    config: AppConfig
    logger: logging.Logger
    database: DatabaseManager
    service: SiteService
    catalog: Catalog


def build_context(config: AppConfig, logger: logging.Logger, db_path: Path | None = None) -> AppContext:
    database = DatabaseManager(db_path=db_path, logger=logger)
    connection = database.connect()

    session_factory = create_session_factory(config, logger)
    probe = RemoteInstallationProbe(session_factory, logger=logger)
    installer = RemoteInstaller(
        session_factory,
        probe,
        install_timeout_seconds=config.get_install_timeout_seconds(),
        logger=logger,
    )

    profile_manager = CachingProfileManager(
        ProfileManager(ProfileRepository(connection), probe, logger=logger),
        refresh_seconds=config.get_profile_cache_ttl_seconds(),
        logger=logger,
    )
    catalog = Catalog.load(config.get_catalog_dir(), logger=logger)
    service = SiteService(profile_manager, installer, catalog, logger=logger)
    return AppContext(config=config, logger=logger, database=database, service=service, catalog=catalog)


def _context(ctx: click.Context) -> AppContext:
    return ctx.obj["app"]


def _fail(message: str) -> None:
    click.secho(message, fg="red", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.json (default: per-user app data dir).",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the profile database.",
)
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, db_path: Path | None, debug: bool) -> None:
    """Install Drupal modules on remote sites over SSH."""
    ensure_runtime_directories()
    config = AppConfig(config_path)
    logger = setup_logging(level=logging.DEBUG if debug else logging.INFO)

    app_context = build_context(config, logger, db_path=db_path)
    ctx.ensure_object(dict)
    ctx.obj["app"] = app_context
    ctx.call_on_close(app_context.database.close)


@cli.group()
def profiles() -> None:
    """Manage site profiles."""


@profiles.command("list")
@click.option("--filter", "title_filter", default=None, help="Only profiles whose title contains this text.")
@click.pass_context
def profiles_list(ctx: click.Context, title_filter: str | None) -> None:
    """List saved site profiles."""
    result = _context(ctx).service.get_profiles()
    if not result.ok:
        _fail(result.message)

    profiles = result.data
    if title_filter:
        profiles = [profile for profile in profiles if profile.is_match_for(title_filter)]
    if not profiles:
        click.echo("No profiles yet." if not result.data else "No matching profiles.")
        return

    for profile in profiles:
        click.echo(f"{profile.id:>4}  {profile.title}  {profile.username}@{profile.host}:{profile.directory}  ({profile.version})")


@profiles.command("add")
@click.option("--title", prompt=True, help="Display title.")
@click.option("--user", "username", prompt=True, help="SSH login name.")
@click.option("--host", prompt=True, help="SSH host, optionally host:port.")
@click.option("--directory", prompt=True, help="Drupal project root on the host.")
@click.password_option(confirmation_prompt=False, help="SSH password (not stored).")
@click.pass_context
def profiles_add(ctx: click.Context, title: str, username: str, host: str, directory: str, password: str) -> None:
    """Probe a remote site and save it as a profile."""
    result = asyncio.run(_context(ctx).service.create_profile(title, username, password, host, directory))
    if not result.ok:
        _fail(result.message)

    profile = result.data
    click.secho(f"Saved profile {profile.id}: {profile.title} (Drupal {profile.version})", fg="green")


@profiles.command("delete")
@click.argument("profile_ids", nargs=-1, type=int, required=True)
@click.pass_context
def profiles_delete(ctx: click.Context, profile_ids: tuple[int, ...]) -> None:
    """Delete profiles by id."""
    service = _context(ctx).service
    targets = []
    for profile_id in profile_ids:
        loaded = service.load_profile_by_id(profile_id)
        if not loaded.ok:
            _fail(loaded.message)
        targets.append(loaded.data)

    result = service.delete_profiles(targets)
    if not result.ok:
        _fail(result.message)
    click.echo(f"Deleted {len(targets)} profile(s).")


@cli.group()
def packages() -> None:
    """Browse the package catalog."""


@packages.command("search")
@click.argument("text")
@click.option("--profile-id", type=int, required=True, help="Profile whose Drupal version selects the catalog.")
@click.pass_context
def packages_search(ctx: click.Context, text: str, profile_id: int) -> None:
    """Search installable packages for a profile."""
    app_context = _context(ctx)
    loaded = app_context.service.load_profile_by_id(profile_id)
    if not loaded.ok:
        _fail(loaded.message)

    matches = app_context.catalog.search(text, loaded.data.version)
    for installable in matches:
        click.echo(f"{installable.machine_name:<24} {installable.title}  {installable.link}")
    if not matches:
        click.echo("No matching packages.")


@cli.command()
@click.argument("machine_name")
@click.option("--profile-id", type=int, required=True, help="Target profile.")
@click.password_option(confirmation_prompt=False, help="SSH password (not stored).")
@click.pass_context
def install(ctx: click.Context, machine_name: str, profile_id: int, password: str) -> None:
    """Install a package on the site of a profile."""
    service = _context(ctx).service
    result = asyncio.run(service.handle_install_request(InstallRequest(machine_name=machine_name), profile_id, password))
    if not result.ok:
        _fail(result.message)
    click.secho(f"Installed {machine_name}.", fg="green")


@cli.command()
@click.option("--profile-id", type=int, default=None, help="Target profile (default: active profile).")
@click.password_option(confirmation_prompt=False, help="SSH password (not stored).")
@click.pass_context
def serve(ctx: click.Context, profile_id: int | None, password: str) -> None:
    """Listen for install requests from the browser extension."""
    app_context = _context(ctx)
    config = app_context.config
    target_id = profile_id if profile_id is not None else config.get_active_profile_id()
    if target_id is None:
        _fail("No profile selected")

    loaded = app_context.service.load_profile_by_id(target_id)
    if not loaded.ok:
        _fail(loaded.message)
    config.set_active_profile_id(target_id)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    channel = InstallRequestChannel()
    server = LoopbackServer(
        channel,
        host=config.get_loopback_host(),
        port=config.get_loopback_port(),
        logger=app_context.logger,
    )
    runner = InstallRunner(app_context.service, target_id, password, app_context.logger)
    pump = InstallRequestPump(channel)
    pump.request_received.connect(runner.run_request)
    runner.install_finished.connect(
        lambda name, ok, message: click.secho(
            f"{name}: {'installed' if ok else message}", fg="green" if ok else "red"
        )
    )

    signal.signal(signal.SIGINT, lambda *_args: app.quit())
    server.start()
    pump.start()
    click.echo(f"Listening on {config.get_loopback_host()}:{server.port} for {loaded.data.title}. Ctrl+C to stop.")
    try:
        app.exec()
    finally:
        pump.stop()
        server.stop()


def main() -> int:
    cli(obj={})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
