"""Abstract base classes for sysfs attribute access."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from typing_extensions import Self


class AttrState(Enum):
    """Outcome of reading a single attribute file."""

    VALUE = "value"
    ABSENT = "absent"
    ERROR = "error"


@dataclass(frozen=True)
class AttrRead:
    """Tri-state result of an attribute read.

    Exactly one of ``value`` (state VALUE) or ``error`` (state ERROR) is set;
    both are None when the attribute does not exist.
    """

    state: AttrState
    value: str | None = None
    error: OSError | None = None

    @classmethod
    def of(cls, value: str) -> AttrRead:
        return cls(AttrState.VALUE, value=value)

    @classmethod
    def absent(cls) -> AttrRead:
        return cls(AttrState.ABSENT)

    @classmethod
    def failed(cls, error: OSError) -> AttrRead:
        return cls(AttrState.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.state is AttrState.VALUE

    @property
    def token(self) -> str | None:
        """First whitespace-delimited token of the value, if any."""
        if self.value is None:
            return None
        parts = self.value.split()
        return parts[0] if parts else None


@runtime_checkable
class AttributeAccess(Protocol):
    """Protocol for reading and writing sysfs attribute files.

    An attribute is addressed by the device directory it lives in and its
    file name, e.g. ``(Path("/sys/bus/pci/devices/0000:03:00.1"), "remove")``.
    """

    def has_attr(self, device_dir: Path, name: str) -> bool:
        """Check whether the attribute file exists."""
        ...

    def read_attr(self, device_dir: Path, name: str) -> AttrRead:
        """Read the attribute. Never raises; failures are in the result."""
        ...

    def write_attr(self, device_dir: Path, name: str, value: str) -> None:
        """Write ``value`` to the attribute.

        Raises:
            OSError: If the attribute cannot be opened or the kernel rejects
                the write.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the accessor."""
        ...


class BaseAccessor(ABC):
    """Abstract base class for attribute accessors.

    Subclasses must implement has_attr(), read_attr() and write_attr().
    """

    def _validate_name(self, name: str) -> None:
        """Validate that name is a plain attribute file name."""
        if not name or "/" in name or name in (".", ".."):
            raise ValueError(f"Invalid attribute name: {name!r}")

    @abstractmethod
    def has_attr(self, device_dir: Path, name: str) -> bool:
        """Check whether the attribute file exists."""
        ...

    @abstractmethod
    def read_attr(self, device_dir: Path, name: str) -> AttrRead:
        """Read the attribute."""
        ...

    @abstractmethod
    def write_attr(self, device_dir: Path, name: str, value: str) -> None:
        """Write the attribute."""
        ...

    def close(self) -> None:  # noqa: B027
        """Release any resources held by the accessor.

        Intentionally not abstract - close() is optional and defaults to no-op.
        """

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()
