from __future__ import annotations

from typing import Protocol

from core.profiles.models import Profile


class ProfileManager(Protocol):
    async def create_profile(
        self,
        title: str,
        username: str,
        password: str,
        host: str,
        directory: str,
    ) -> Profile: ...

    def load_profile_by_id(self, profile_id: int) -> Profile | None: ...

    def get_profiles(self) -> list[Profile]: ...

    def save_profile(self, profile: Profile) -> None: ...

    def delete_profile(self, profile: Profile) -> None: ...

    def save_profiles(self, profiles: list[Profile]) -> None: ...

    def delete_profiles(self, profiles: list[Profile]) -> None: ...
