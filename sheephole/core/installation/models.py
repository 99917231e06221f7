from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from packaging.version import InvalidVersion, Version

from core.profiles.models import PlatformType


class InstructionType(str, Enum):
    COMPOSER_NAMESPACE = "composer_namespace"


class ProjectType(str, Enum):
    EXTENSION = "extension"


class OperationStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    BAD_ARGUMENTS = "bad_arguments"


@dataclass(frozen=True, slots=True)
class InstallationInstruction:
    kind: InstructionType
    command: str


@dataclass(frozen=True, slots=True)
class InstallableVersion:
    major: int

    def is_compatible(self, version: str | Version) -> bool:
        try:
            parsed = version if isinstance(version, Version) else Version(str(version))
        except InvalidVersion:
            return False
        return parsed.major == self.major

    def __str__(self) -> str:
        return f"{self.major}.x"


@dataclass(slots=True)
class Installable:
    title: str
    machine_name: str
    description: str
    link: str
    platform_type: PlatformType
    version: InstallableVersion
    instructions: list[InstallationInstruction] = field(default_factory=list)
    extra: dict[str, str] = field(default_factory=dict)

    def composer_namespaces(self) -> list[str]:
        return [
            instruction.command
            for instruction in self.instructions
            if instruction.kind == InstructionType.COMPOSER_NAMESPACE and instruction.command.strip() != ""
        ]

    def is_match_for(self, substring: str) -> bool:
        needle = substring.lower()
        return needle in self.title.lower() or needle in self.machine_name.lower()

    def __str__(self) -> str:
        return self.title


@dataclass(slots=True)
class OperationResult:
    status: OperationStatus
    data: Any = None
    messages: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, data: Any = None) -> OperationResult:
        return cls(status=OperationStatus.SUCCESS, data=data)

    @classmethod
    def failure(cls, message: str) -> OperationResult:
        return cls(status=OperationStatus.FAILURE, messages=[message])

    @classmethod
    def bad_arguments(cls, message: str) -> OperationResult:
        return cls(status=OperationStatus.BAD_ARGUMENTS, messages=[message])

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def message(self) -> str:
        return "; ".join(self.messages)
