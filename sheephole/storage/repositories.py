from __future__ import annotations

import sqlite3

from core.profiles.models import PlatformType, Profile, epoch_now

_PROFILE_COLUMNS = """
    id,
    uid,
    title,
    username,
    host,
    directory,
    platform_type,
    version_string,
    created,
    modified
"""


def _require_lastrowid(cursor: sqlite3.Cursor) -> int:
    if cursor.lastrowid is None or int(cursor.lastrowid) <= 0:
        raise RuntimeError("Insert did not return a row id")
    return int(cursor.lastrowid)


class ProfileRepository:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def list_profiles(self) -> list[Profile]:
        rows = self._connection.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM site_profiles ORDER BY id"
        ).fetchall()
        return [self._row_to_profile(row) for row in rows]

    def get_profile(self, profile_id: int) -> Profile | None:
        row = self._connection.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM site_profiles WHERE id = ?",
            (profile_id,),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_profile(row)

    def save_profile(self, profile: Profile) -> None:
        if profile.id == 0:
            self._insert_profile(profile)
        else:
            self._update_profile(profile)

    def delete_profile(self, profile_id: int) -> None:
        self._connection.execute("DELETE FROM site_profiles WHERE id = ?", (profile_id,))
        self._connection.commit()

    def _insert_profile(self, profile: Profile) -> None:
        now = epoch_now()
        cursor = self._connection.execute(
            """
            INSERT INTO site_profiles (
                uid,
                title,
                username,
                host,
                directory,
                platform_type,
                version_string,
                created,
                modified
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile.uid,
                profile.title,
                profile.username,
                profile.host,
                profile.directory,
                profile.platform_type.value,
                profile.version,
                now,
                now,
            ),
        )
        self._connection.commit()

        profile.assign_id(_require_lastrowid(cursor))
        profile.created_at = now
        profile.modified_at = now

    def _update_profile(self, profile: Profile) -> None:
        profile.touch()
        self._connection.execute(
            """
            UPDATE site_profiles
            SET
                uid = ?,
                title = ?,
                username = ?,
                host = ?,
                directory = ?,
                platform_type = ?,
                version_string = ?,
                created = ?,
                modified = ?
            WHERE id = ?
            """,
            (
                profile.uid,
                profile.title,
                profile.username,
                profile.host,
                profile.directory,
                profile.platform_type.value,
                profile.version,
                profile.created_at,
                profile.modified_at,
                profile.id,
            ),
        )
        self._connection.commit()

    def _row_to_profile(self, row: sqlite3.Row) -> Profile:
        return Profile(
            id=int(row["id"]),
            uid=int(row["uid"]),
            title=str(row["title"]),
            username=str(row["username"]),
            host=str(row["host"]),
            directory=str(row["directory"]),
            platform_type=PlatformType(str(row["platform_type"])),
            version=str(row["version_string"]),
            created_at=int(row["created"]),
            modified_at=int(row["modified"]),
        )
