from __future__ import annotations

import logging

from core.installation.catalog import Catalog
from core.installation.models import Installable, OperationResult
from core.loopback.channel import InstallRequest
from core.profiles.caching_manager import CachingProfileManager
from core.profiles.models import Profile
from core.remote.errors import RemoteError
from core.remote.installer import InstallReport, RemoteInstaller


class SiteService:
    """Entry point for callers: every outcome comes back as an OperationResult."""

    def __init__(
        self,
        profile_manager: CachingProfileManager,
        installer: RemoteInstaller,
        catalog: Catalog,
        logger: logging.Logger | None = None,
    ) -> None:
        self._profile_manager = profile_manager
        self._installer = installer
        self._catalog = catalog
        self._logger = logger or logging.getLogger("sheephole.service")

    async def create_profile(
        self,
        title: str,
        username: str,
        password: str,
        host: str,
        directory: str,
    ) -> OperationResult:
        try:
            profile = await self._profile_manager.create_profile(title, username, password, host, directory)
        except Exception as error:
            self._logger.exception("Creating profile %s failed", title)
            return OperationResult.failure(str(error))
        return OperationResult.success(profile)

    def load_profile_by_id(self, profile_id: int) -> OperationResult:
        try:
            profile = self._profile_manager.load_profile_by_id(profile_id)
        except Exception as error:
            self._logger.exception("Loading profile %s failed", profile_id)
            return OperationResult.failure(str(error))

        if profile is None:
            return OperationResult.bad_arguments(f"No such profile: {profile_id}")
        return OperationResult.success(profile)

    def get_profiles(self) -> OperationResult:
        try:
            profiles = self._profile_manager.get_profiles()
        except Exception as error:
            self._logger.exception("Listing profiles failed")
            return OperationResult.failure(str(error))
        return OperationResult.success(list(profiles))

    def save_profiles(self, profiles: list[Profile]) -> OperationResult:
        try:
            self._profile_manager.save_profiles(profiles)
        except Exception as error:
            self._logger.exception("Saving profiles failed")
            return OperationResult.failure(str(error))
        return OperationResult.success(list(profiles))

    def delete_profiles(self, profiles: list[Profile]) -> OperationResult:
        try:
            self._profile_manager.delete_profiles(profiles)
        except Exception as error:
            self._logger.exception("Deleting profiles failed")
            return OperationResult.failure(str(error))
        return OperationResult.success()

    def get_installables(self, profile: Profile) -> list[Installable]:
        return self._catalog.for_version(profile.version)

    def find_installables(self, machine_name: str) -> list[Installable]:
        return self._catalog.find(machine_name)

    async def install_installable(self, installable: Installable, profile: Profile, password: str) -> OperationResult:
        namespaces = installable.composer_namespaces()
        if not namespaces:
            return OperationResult.bad_arguments(f"{installable.machine_name} has no composer namespace")

        reports: list[InstallReport] = []
        try:
            for namespace in namespaces:
                reports.append(await self._installer.install_package(profile, password, namespace))
        except RemoteError as error:
            self._logger.error("Installing %s on %s failed: %s", installable.machine_name, profile.title, error)
            return OperationResult.failure(str(error))
        except Exception as error:
            self._logger.exception("Installing %s on %s failed", installable.machine_name, profile.title)
            return OperationResult.failure(str(error))

        self._logger.info("Installed %s on %s", installable.machine_name, profile.title)
        return OperationResult.success(reports)

    async def handle_install_request(self, request: InstallRequest, profile_id: int, password: str) -> OperationResult:
        if password is None or password == "":
            return OperationResult.bad_arguments("No password provided")

        loaded = self.load_profile_by_id(profile_id)
        if not loaded.ok:
            return loaded

        profile: Profile = loaded.data
        profile.password = password

        installable = self._catalog.pick_compatible(self.find_installables(request.machine_name), profile.version)
        if installable is None:
            return OperationResult.bad_arguments(
                f"No installation candidate found for {request.machine_name} on {profile.version}"
            )

        return await self.install_installable(installable, profile, password)
