"""Mock accessor for testing without real hardware."""

from collections.abc import Iterable
from pathlib import Path

from xbhotplug.backends.base import AttrRead, BaseAccessor

AttrKey = tuple[str, str]


class MockAccessor(BaseAccessor):
    """Mock accessor with configurable attribute contents.

    Attributes are keyed by the device directory's name (the BDF) and the
    attribute name. All reads and writes are recorded in order, and errors
    can be injected per attribute.

    Attributes:
        attrs: Dict mapping (bdf, name) to the current attribute contents.
        read_log: List of (bdf, name) tuples for each read operation.
        write_log: List of (bdf, name, value) tuples for each write operation.
    """

    def __init__(self, attrs: dict[AttrKey, str] | None = None) -> None:
        """Initialize mock accessor with optional pre-populated attributes.

        Args:
            attrs: Optional dict of (bdf, name) -> contents to pre-populate.
        """
        self.attrs: dict[AttrKey, str] = dict(attrs) if attrs else {}
        self.read_log: list[AttrKey] = []
        self.write_log: list[tuple[str, str, str]] = []
        self._sequences: dict[AttrKey, list[str]] = {}
        self._read_errors: dict[AttrKey, OSError] = {}
        self._write_errors: dict[AttrKey, OSError] = {}

    @staticmethod
    def _key(device_dir: Path, name: str) -> AttrKey:
        return (device_dir.name, name)

    def has_attr(self, device_dir: Path, name: str) -> bool:
        self._validate_name(name)
        return self._key(device_dir, name) in self.attrs

    def read_attr(self, device_dir: Path, name: str) -> AttrRead:
        """Read an attribute, advancing its scripted sequence if one is set."""
        self._validate_name(name)
        key = self._key(device_dir, name)
        self.read_log.append(key)

        if key in self._read_errors:
            return AttrRead.failed(self._read_errors[key])

        sequence = self._sequences.get(key)
        if sequence:
            value = sequence.pop(0) if len(sequence) > 1 else sequence[0]
            self.attrs[key] = value

        if key not in self.attrs:
            return AttrRead.absent()
        return AttrRead.of(self.attrs[key])

    def write_attr(self, device_dir: Path, name: str, value: str) -> None:
        """Write an attribute, raising the injected error if one is set."""
        self._validate_name(name)
        key = self._key(device_dir, name)
        if key in self._write_errors:
            raise self._write_errors[key]
        self.write_log.append((key[0], name, value))
        self.attrs[key] = value

    def reset_logs(self) -> None:
        """Clear read and write logs."""
        self.read_log.clear()
        self.write_log.clear()

    def set_attr(self, bdf: str, name: str, value: str) -> None:
        """Set an attribute value without logging (for test setup)."""
        self.attrs[(bdf, name)] = value

    def set_sequence(self, bdf: str, name: str, values: Iterable[str]) -> None:
        """Script successive read values; the last one repeats forever."""
        values = list(values)
        if not values:
            raise ValueError("Sequence must contain at least one value")
        self._sequences[(bdf, name)] = values
        self.attrs.setdefault((bdf, name), values[0])

    def fail_read(self, bdf: str, name: str, error: OSError) -> None:
        """Make reads of an attribute report ``error``."""
        self._read_errors[(bdf, name)] = error

    def fail_write(self, bdf: str, name: str, error: OSError) -> None:
        """Make writes to an attribute raise ``error``."""
        self._write_errors[(bdf, name)] = error

    def writes_to(self, name: str) -> list[str]:
        """BDFs written for attribute ``name``, in write order."""
        return [bdf for bdf, attr, _ in self.write_log if attr == name]
