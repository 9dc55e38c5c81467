"""Hotplug sequencing for accelerator cards."""

from xbhotplug.hotplug.orchestrator import VM_NOTE, HotplugManager
from xbhotplug.hotplug.sequencer import remove_function, rescan_bridge, shutdown_function

__all__ = [
    "VM_NOTE",
    "HotplugManager",
    "remove_function",
    "rescan_bridge",
    "shutdown_function",
]
