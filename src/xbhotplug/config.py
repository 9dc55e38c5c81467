"""Hotplug configuration and YAML profile loading."""

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from xbhotplug.backends.sysfs import SYSFS_PCI_PATH

# Xilinx vendor ID and the accelerator function used to find the root port
DEFAULT_VENDOR_ID = "0x10ee"
DEFAULT_DEVICE_ID = "0x9134"
DEFAULT_MGMT_FUNCTION = 0
DEFAULT_USER_FUNCTION = 1
DEFAULT_POLL_INTERVAL = 1.0  # seconds
DEFAULT_POLL_ATTEMPTS = 60


@dataclass(frozen=True)
class HotplugConfig:
    """Tunables for hotplug operations.

    Identity strings are compared exactly against sysfs contents, so they
    are kept in sysfs form (lowercase ``0x`` + 4 hex digits).
    """

    sysfs_root: Path = SYSFS_PCI_PATH
    vendor_id: str = DEFAULT_VENDOR_ID
    device_id: str = DEFAULT_DEVICE_ID
    mgmt_function: int = DEFAULT_MGMT_FUNCTION
    user_function: int = DEFAULT_USER_FUNCTION
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_attempts: int = DEFAULT_POLL_ATTEMPTS

    def __post_init__(self) -> None:
        """Validate value ranges."""
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must be non-negative, got {self.poll_interval}")
        if self.poll_attempts < 1:
            raise ValueError(f"poll_attempts must be at least 1, got {self.poll_attempts}")
        for name in ("mgmt_function", "user_function"):
            value = getattr(self, name)
            if not 0 <= value <= 7:
                raise ValueError(f"{name} must be 0-7, got {value}")
        if self.mgmt_function == self.user_function:
            raise ValueError("mgmt_function and user_function must differ")

    @property
    def poll_timeout(self) -> float:
        """Worst-case time spent waiting for shutdown, in seconds."""
        return self.poll_interval * self.poll_attempts


def _parse_pci_id(name: str, value: Any) -> str:
    """Normalize a vendor/device ID to sysfs form.

    YAML reads unquoted ``0x10ee`` as an integer, so both ints and strings
    are accepted.
    """
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a PCI ID, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value, 16)
        except ValueError:
            raise ValueError(f"{name} must be a hex PCI ID, got {value!r}") from None
    if not isinstance(value, int) or not 0 <= value <= 0xFFFF:
        raise ValueError(f"{name} must be a 16-bit PCI ID, got {value!r}")
    return f"{value:#06x}"


def _parse_int(name: str, value: Any) -> int:
    """Parse an integer setting; floats must be integral."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be an integer, got {value!r}")
        return int(value)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _parse_float(name: str, value: Any) -> float:
    """Parse a numeric setting."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        result = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(result):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return result


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a mapping section, or an empty one if absent."""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def parse_config(data: dict[str, Any], base: HotplugConfig | None = None) -> HotplugConfig:
    """Build a configuration from a parsed YAML profile.

    Args:
        data: Profile contents. Unknown keys are ignored.
        base: Configuration providing values for anything not in ``data``.

    Returns:
        HotplugConfig with the profile's overrides applied.

    Raises:
        ValueError: If a value has the wrong type or range.
    """
    config = base or HotplugConfig()
    overrides: dict[str, Any] = {}

    if "sysfs_root" in data:
        sysfs_root = data["sysfs_root"]
        if not isinstance(sysfs_root, str) or not sysfs_root:
            raise ValueError(f"sysfs_root must be a path, got {sysfs_root!r}")
        overrides["sysfs_root"] = Path(sysfs_root)

    signature = _section(data, "signature")
    if "vendor" in signature:
        overrides["vendor_id"] = _parse_pci_id("signature.vendor", signature["vendor"])
    if "device" in signature:
        overrides["device_id"] = _parse_pci_id("signature.device", signature["device"])

    functions = _section(data, "functions")
    if "mgmt" in functions:
        overrides["mgmt_function"] = _parse_int("functions.mgmt", functions["mgmt"])
    if "user" in functions:
        overrides["user_function"] = _parse_int("functions.user", functions["user"])

    shutdown = _section(data, "shutdown")
    if "poll_interval" in shutdown:
        overrides["poll_interval"] = _parse_float(
            "shutdown.poll_interval", shutdown["poll_interval"]
        )
    if "poll_attempts" in shutdown:
        overrides["poll_attempts"] = _parse_int(
            "shutdown.poll_attempts", shutdown["poll_attempts"]
        )

    return replace(config, **overrides)


def load_config(path: Path) -> HotplugConfig:
    """Load a hotplug profile from a YAML file.

    Example profile::

        signature:
          vendor: "0x10ee"
          device: "0x9134"
        functions:
          mgmt: 0
          user: 1
        shutdown:
          poll_interval: 1.0
          poll_attempts: 60

    Args:
        path: Path to the YAML file.

    Returns:
        HotplugConfig object.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If a value is invalid.
    """
    with path.open() as f:
        data = yaml.safe_load(f)

    if data is None:
        return HotplugConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Hotplug profile must be a mapping: {path}")

    return parse_config(data)
