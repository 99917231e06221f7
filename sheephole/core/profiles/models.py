from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import time

DEFAULT_UID = 1
DEFAULT_VERSION = "11.0.0"


class PlatformType(str, Enum):
    DRUPAL = "drupal"


def epoch_now() -> int:
    return int(time.time())


@dataclass(slots=True)
class Profile:
    title: str
    username: str
    host: str
    directory: str
    id: int = 0
    uid: int = DEFAULT_UID
    created_at: int = field(default_factory=epoch_now)
    modified_at: int = field(default_factory=epoch_now)
    version: str = DEFAULT_VERSION
    platform_type: PlatformType = PlatformType.DRUPAL
    password: str | None = field(default=None, repr=False, compare=False)
    to_be_deleted: bool = field(default=False, compare=False)

    @property
    def is_persisted(self) -> bool:
        return self.id > 0

    def assign_id(self, profile_id: int) -> None:
        if profile_id <= 0:
            raise ValueError(f"invalid profile id: {profile_id}")
        if self.is_persisted and self.id != profile_id:
            raise ValueError(f"profile {self.id} already has an id")
        self.id = profile_id

    def touch(self) -> None:
        self.modified_at = epoch_now()

    def is_match_for(self, substring: str) -> bool:
        return substring.lower() in self.title.lower()
