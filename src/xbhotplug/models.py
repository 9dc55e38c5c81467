"""Data models for hotplug operations."""

from __future__ import annotations

import errno
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class FunctionRole(Enum):
    """Role of a PCI function on an accelerator card."""

    USER = "user"  # Auxiliary, application-facing function
    MGMT = "mgmt"  # Management function, parent of the user function

    def __str__(self) -> str:
        return self.value


class Status(Enum):
    """Outcome kind of a hotplug operation."""

    SUCCESS = 0
    NOT_FOUND = errno.ENOENT
    FAILED = errno.EIO
    TIMED_OUT = errno.ETIMEDOUT
    CANCELED = errno.ECANCELED
    INVALID_ARGUMENT = errno.EINVAL

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")


@dataclass(frozen=True)
class PciFunction:
    """One PCI function of an accelerator card.

    Two of these exist per card, sharing ``index`` and differing in ``role``.
    """

    bdf: str
    index: int
    role: FunctionRole
    sysfs_path: Path

    @property
    def is_user(self) -> bool:
        return self.role is FunctionRole.USER

    def __str__(self) -> str:
        return f"{self.bdf} ({self.role} function of card {self.index})"


@dataclass(frozen=True)
class Bridge:
    """Upstream bridge or root port hosting an accelerator function.

    ``path`` is the top-level bus directory that gets rescanned; ``endpoint``,
    ``endpoint_vendor`` and ``endpoint_device`` identify the child function
    that matched. The bridge's own IDs are not recorded.
    """

    path: Path
    endpoint: str
    endpoint_vendor: str
    endpoint_device: str

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class PollState:
    """Progress of a single shutdown wait.

    ``polls`` counts status reads, not seconds; the time waited is
    ``polls * poll_interval``.
    """

    polls: int = 0
    last_status: int | None = None


@dataclass(frozen=True)
class Result:
    """Tagged outcome of a hotplug step.

    Attributes:
        status: Outcome kind.
        message: Human-readable description.
        error: Underlying OS error, when the failure came from one.
    """

    status: Status
    message: str = ""
    error: OSError | None = None

    @classmethod
    def success(cls, message: str = "") -> Result:
        return cls(Status.SUCCESS, message)

    @classmethod
    def not_found(cls, message: str) -> Result:
        return cls(Status.NOT_FOUND, message)

    @classmethod
    def failed(cls, message: str, error: OSError | None = None) -> Result:
        return cls(Status.FAILED, message, error)

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 on success, otherwise a negative errno.

        Failures carrying an OS error report that error's errno.
        """
        if self.ok:
            return 0
        if self.status is Status.FAILED and self.error is not None and self.error.errno:
            return -self.error.errno
        return -self.status.value

    def __str__(self) -> str:
        if self.message:
            return f"{self.status}: {self.message}"
        return str(self.status)
