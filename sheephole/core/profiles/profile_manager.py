from __future__ import annotations

import logging

from core.profiles.models import DEFAULT_UID, Profile
from core.remote.probe import RemoteInstallationProbe
from storage.repositories import ProfileRepository


class ProfileManager:
    """Authoritative profile access: every call goes to the database."""

    def __init__(
        self,
        repository: ProfileRepository,
        probe: RemoteInstallationProbe,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repository = repository
        self._probe = probe
        self._logger = logger or logging.getLogger("sheephole.profiles")

    async def create_profile(
        self,
        title: str,
        username: str,
        password: str,
        host: str,
        directory: str,
    ) -> Profile:
        info = await self._probe.get_installation_info(username, password, host, directory)

        profile = Profile(
            title=title,
            username=username,
            host=host,
            directory=directory,
            uid=DEFAULT_UID,
            version=info.version,
        )
        self.save_profile(profile)
        profile.password = password

        self._logger.info("Created profile %s (%s) for %s", profile.id, profile.title, host)
        return profile

    def load_profile_by_id(self, profile_id: int) -> Profile | None:
        return self._repository.get_profile(profile_id)

    def get_profiles(self) -> list[Profile]:
        return self._repository.list_profiles()

    def save_profile(self, profile: Profile) -> None:
        self._repository.save_profile(profile)

    def delete_profile(self, profile: Profile) -> None:
        if not profile.is_persisted:
            return
        self._repository.delete_profile(profile.id)

    def save_profiles(self, profiles: list[Profile]) -> None:
        for profile in profiles:
            self.save_profile(profile)

    def delete_profiles(self, profiles: list[Profile]) -> None:
        for profile in profiles:
            self.delete_profile(profile)
