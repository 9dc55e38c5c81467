"""Sysfs attribute access backends."""

from xbhotplug.backends.base import AttributeAccess, AttrRead, AttrState, BaseAccessor
from xbhotplug.backends.mock import MockAccessor
from xbhotplug.backends.sysfs import SYSFS_PCI_PATH, SysfsAccessor, validate_bdf

__all__ = [
    "SYSFS_PCI_PATH",
    "AttrRead",
    "AttrState",
    "AttributeAccess",
    "BaseAccessor",
    "MockAccessor",
    "SysfsAccessor",
    "validate_bdf",
]
