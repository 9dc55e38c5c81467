"""Sysfs accessor for PCI device attribute files."""

import logging
import re
from pathlib import Path

from xbhotplug.backends.base import AttrRead, BaseAccessor

logger = logging.getLogger(__name__)

SYSFS_PCI_PATH = Path("/sys/bus/pci/devices")

_BDF_PATTERN = re.compile(r"^[0-9a-fA-F]{4}:[0-9a-fA-F]{2}:[0-9a-fA-F]{2}\.[0-9a-fA-F]$")


def validate_bdf(bdf: str) -> None:
    """Validate a PCI address in ``DDDD:BB:DD.F`` form.

    Raises:
        ValueError: If the string is not a well-formed BDF. This also rejects
            anything that could escape the sysfs directory.
    """
    if not _BDF_PATTERN.match(bdf):
        raise ValueError(f"Invalid BDF format: {bdf!r} (expected DDDD:BB:DD.F)")


class SysfsAccessor(BaseAccessor):
    """Read and write attribute files under /sys/bus/pci/devices.

    Writes open the file, write the value and flush before closing, so that
    errors the kernel reports on write surface as OSError here rather than
    being lost on close.
    """

    def has_attr(self, device_dir: Path, name: str) -> bool:
        self._validate_name(name)
        return (device_dir / name).exists()

    def read_attr(self, device_dir: Path, name: str) -> AttrRead:
        self._validate_name(name)
        path = device_dir / name
        try:
            value = path.read_text()
        except FileNotFoundError:
            return AttrRead.absent()
        except OSError as e:
            logger.debug("read %s failed: %s", path, e)
            return AttrRead.failed(e)
        logger.debug("read %s -> %r", path, value.strip())
        return AttrRead.of(value)

    def write_attr(self, device_dir: Path, name: str, value: str) -> None:
        self._validate_name(name)
        path = device_dir / name
        logger.debug("write %r -> %s", value, path)
        with path.open("w") as f:
            f.write(value)
            f.flush()
