"""Managed PCIe hotplug for accelerator cards."""

__version__ = "0.1.0"
