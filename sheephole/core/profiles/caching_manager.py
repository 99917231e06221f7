from __future__ import annotations

from dataclasses import replace
import logging
from typing import Callable
import time

from core.profiles.entry_cache import EntryCache
from core.profiles.manager_base import ProfileManager
from core.profiles.models import Profile

REFRESH_SECONDS = 3600
MAX_CACHED_PROFILES = 100


class CachingProfileManager:
    """Read-through cache in front of an authoritative profile manager.

    Profiles are cached per id for ``refresh_seconds``. The cache keeps its own
    copies without the password and hands out copies, so edits by callers only
    reach it through a successful save. The set of known ids is filled from one
    full fetch of the delegate the first time it is listed and then kept current by this manager's own create, save and delete calls.
    External changes to the underlying store are not detected; call
    ``invalidate`` when they are known to have happened.
    """

    def __init__(
        self,
        delegate: ProfileManager,
        refresh_seconds: float = REFRESH_SECONDS,
        max_entries: int = MAX_CACHED_PROFILES,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._delegate = delegate
        self._cache: EntryCache[int, Profile] = EntryCache(
            max_entries=max_entries,
            ttl_seconds=refresh_seconds,
            clock=clock,
        )
        self._profile_ids: set[int] = set()
        self._ids_loaded = False
        self._logger = logger or logging.getLogger("sheephole.profiles")

    async def create_profile(
        self,
        title: str,
        username: str,
        password: str,
        host: str,
        directory: str,
    ) -> Profile:
        profile = await self._delegate.create_profile(title, username, password, host, directory)
        self._remember(profile)
        return profile

    def load_profile_by_id(self, profile_id: int) -> Profile | None:
        cached = self._cached(profile_id)
        if cached is not None:
            return cached

        profile = self._delegate.load_profile_by_id(profile_id)
        if profile is not None:
            self._cache.put(profile_id, _cache_copy(profile))
        return profile

    def get_profiles(self) -> list[Profile]:
        if not self._ids_loaded or not self._profile_ids:
            for profile in self._delegate.get_profiles():
                if profile.is_persisted:
                    self._profile_ids.add(profile.id)
            self._ids_loaded = True

        profiles: list[Profile] = []
        for profile_id in sorted(self._profile_ids):
            profile = self.load_profile_by_id(profile_id)
            if profile is None:
                self._profile_ids.discard(profile_id)
                continue
            profiles.append(profile)
        return profiles

    def save_profile(self, profile: Profile) -> None:
        self._delegate.save_profile(profile)
        self._remember(profile)

    def delete_profile(self, profile: Profile) -> None:
        profile_id = profile.id
        self._delegate.delete_profile(profile)
        if profile_id > 0:
            self._cache.remove(profile_id)
            self._profile_ids.discard(profile_id)

    def save_profiles(self, profiles: list[Profile]) -> None:
        for profile in profiles:
            self.save_profile(profile)

    def delete_profiles(self, profiles: list[Profile]) -> None:
        for profile in profiles:
            self.delete_profile(profile)

    def invalidate(self) -> None:
        self._cache.clear()
        self._profile_ids.clear()
        self._ids_loaded = False

    def _remember(self, profile: Profile) -> None:
        if profile.is_persisted:
            self._cache.put(profile.id, _cache_copy(profile))
            self._profile_ids.add(profile.id)

    def _cached(self, profile_id: int) -> Profile | None:
        try:
            cached = self._cache.get(profile_id)
        except Exception as error:
            self._logger.debug("Profile cache lookup for %s failed, treating as miss: %s", profile_id, error)
            return None
        return None if cached is None else replace(cached)


def _cache_copy(profile: Profile) -> Profile:
    return replace(profile, password=None)
