from __future__ import annotations

import asyncio

import pytest

from core.profiles.models import Profile
from core.remote.errors import CommandExecutionError, ManifestMissing, NoInstallCommandSucceeded
from core.remote.installer import SUCCESS_MARKER, RemoteInstaller, build_install_commands
from core.remote.probe import RemoteInstallationProbe
from core.remote.session import CommandResult

ROOT = "/var/www/site"


def _profile(directory: str = ROOT) -> Profile:
    return Profile(id=3, title="Staging", username="deploy", host="example.org", directory=directory)


def _installer(factory) -> RemoteInstaller:
    return RemoteInstaller(factory, RemoteInstallationProbe(factory))


def _scripted(outputs: list[CommandResult | Exception]):
    remaining = list(outputs)

    def respond(command: str) -> CommandResult | Exception:
        if command.startswith("[ "):
            return CommandResult(exit_status=0, output="sheephole-path-present")
        return remaining.pop(0)

    return respond


def test_build_install_commands_quotes_arguments() -> None:
    commands = build_install_commands("/srv/o'brien/site", "drupal/pathauto")

    assert commands == [
        "cd '/srv/o'\\''brien/site' && composer require 'drupal/pathauto' && echo 'sheephole-install-ok'",
        "cd '/srv/o'\\''brien/site' && composer config minimum-stability dev && composer config prefer-stable true"
        " && composer require 'drupal/pathauto' && echo 'sheephole-install-ok'",
    ]


def test_second_candidate_succeeds(make_session_factory) -> None:
    factory = make_session_factory(
        _scripted(
            [
                CommandResult(exit_status=2, output="Your requirements could not be resolved"),
                CommandResult(exit_status=0, output=f"Package operations: 1 install\n{SUCCESS_MARKER}"),
            ]
        )
    )

    report = asyncio.run(_installer(factory).install_package(_profile(), "secret", "drupal/pathauto"))

    expected = build_install_commands(ROOT, "drupal/pathauto")
    session = factory.session
    assert session.commands[1:] == expected
    assert report.attempted == expected
    assert report.command == expected[1]
    assert session.closed is True


def test_first_candidate_success_stops_iteration(make_session_factory) -> None:
    factory = make_session_factory(_scripted([CommandResult(exit_status=0, output=SUCCESS_MARKER)]))

    report = asyncio.run(_installer(factory).install_package(_profile(), "secret", "drupal/token"))

    assert len(factory.session.commands) == 2
    assert report.attempted == [report.command]


def test_exhaustion_reports_all_commands(make_session_factory) -> None:
    factory = make_session_factory(
        _scripted(
            [
                CommandResult(exit_status=1, output="failed"),
                CommandResult(exit_status=0, output="nothing useful"),
            ]
        )
    )

    with pytest.raises(NoInstallCommandSucceeded) as excinfo:
        asyncio.run(_installer(factory).install_package(_profile(), "secret", "drupal/token"))

    assert excinfo.value.commands == build_install_commands(ROOT, "drupal/token")
    assert factory.session.closed is True


def test_candidate_exception_moves_to_next(make_session_factory) -> None:
    factory = make_session_factory(
        _scripted(
            [
                CommandExecutionError("composer require", "Timed out after 5.0 seconds"),
                CommandResult(exit_status=0, output=SUCCESS_MARKER),
            ]
        )
    )

    report = asyncio.run(_installer(factory).install_package(_profile(), "secret", "drupal/token"))

    assert report.command == build_install_commands(ROOT, "drupal/token")[1]
    assert len(report.attempted) == 2


def test_exit_status_zero_without_marker_is_not_success(make_session_factory) -> None:
    factory = make_session_factory(_scripted([CommandResult(exit_status=0, output="")] * 2))

    with pytest.raises(NoInstallCommandSucceeded):
        asyncio.run(_installer(factory).install_package(_profile(), "secret", "drupal/token"))


def test_manifest_rechecked_before_install(make_session_factory, path_responder) -> None:
    factory = make_session_factory(path_responder({ROOT}))

    with pytest.raises(ManifestMissing):
        asyncio.run(_installer(factory).install_package(_profile(), "secret", "drupal/token"))

    assert len(factory.session.commands) == 1
    assert factory.session.closed is True


def test_escaped_directory_in_manifest_check_and_commands(make_session_factory, path_responder) -> None:
    directory = "/srv/o'brien/site"
    factory = make_session_factory(
        path_responder(
            {f"{directory}/composer.json"},
            {"cd ": CommandResult(exit_status=0, output=SUCCESS_MARKER)},
        )
    )

    asyncio.run(_installer(factory).install_package(_profile(directory), "secret", "drupal/token"))

    commands = factory.session.commands
    assert "'/srv/o'\\''brien/site/composer.json'" in commands[0]
    assert commands[1].startswith("cd '/srv/o'\\''brien/site' && ")


def test_install_commands_use_install_timeout(make_session_factory) -> None:
    factory = make_session_factory(_scripted([CommandResult(exit_status=0, output=SUCCESS_MARKER)]))
    installer = RemoteInstaller(factory, RemoteInstallationProbe(factory), install_timeout_seconds=900)

    asyncio.run(installer.install_package(_profile(), "secret", "drupal/pathauto"))

    session = factory.session
    # The manifest check keeps the short default; composer gets the long limit.
    assert session.timeouts == [None, 900]
