"""Offline/online sequencing of accelerator card hotplug."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from xbhotplug.backends.base import AttributeAccess
from xbhotplug.backends.sysfs import SysfsAccessor
from xbhotplug.config import HotplugConfig
from xbhotplug.discovery import discover_cards, find_root_port, get_function
from xbhotplug.hotplug.sequencer import remove_function, rescan_bridge, shutdown_function
from xbhotplug.models import Bridge, FunctionRole, PciFunction, Result, Status

logger = logging.getLogger(__name__)

Resolver = Callable[[int, FunctionRole], PciFunction | None]

VM_NOTE = (
    "Device entry doesn't exist. If you are running in a VM environment, "
    "please shut down the VM before performing this operation."
)


class HotplugManager:
    """Takes accelerator cards offline and brings them back online.

    Offline shuts the user function down, then removes the user function
    and the management function, in that order. Each step must succeed
    before the next one starts and nothing is rolled back: if the
    management removal fails, the card is left with only its user
    function removed.

    Online finds the root port hosting the accelerator and rescans it.

    Example:
        >>> manager = HotplugManager()
        >>> result = manager.run(offline_index=0, online=True)
    """

    def __init__(
        self,
        config: HotplugConfig | None = None,
        accessor: AttributeAccess | None = None,
        resolver: Resolver | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the manager.

        Args:
            config: Hotplug configuration. Defaults are used if omitted.
            accessor: Attribute accessor. Defaults to SysfsAccessor.
            resolver: Maps (card index, role) to a function descriptor.
                Defaults to discovering cards under config.sysfs_root.
            sleep: Blocking sleep used between shutdown polls.
        """
        self.config = config or HotplugConfig()
        self.accessor = accessor or SysfsAccessor()
        self._resolver = resolver
        self._sleep = sleep

    def resolve(self, index: int, role: FunctionRole) -> PciFunction | None:
        """Return the descriptor for one function of card ``index``."""
        if self._resolver is not None:
            return self._resolver(index, role)
        cards = discover_cards(self.config, self.accessor)
        return get_function(cards, index, role, self.config.sysfs_root)

    def shutdown(self, function: PciFunction) -> Result:
        return shutdown_function(
            self.accessor,
            function,
            poll_interval=self.config.poll_interval,
            poll_attempts=self.config.poll_attempts,
            sleep=self._sleep,
        )

    def remove(self, function: PciFunction) -> Result:
        return remove_function(self.accessor, function)

    def find_root_port(self) -> Bridge | None:
        return find_root_port(
            self.accessor,
            self.config.sysfs_root,
            self.config.vendor_id,
            self.config.device_id,
        )

    def rescan(self, bridge: Bridge | None) -> Result:
        return rescan_bridge(self.accessor, bridge)

    def offline(self, index: int) -> Result:
        """Shut down and remove both functions of card ``index``.

        A card without a shutdown attribute (e.g. its user function lives in
        a VM) is left alone and reported as success.
        """
        # Both descriptors are resolved before anything is written; the
        # card may no longer be discoverable once its user function is gone.
        user = self.resolve(index, FunctionRole.USER)
        mgmt = self.resolve(index, FunctionRole.MGMT)
        if user is None or mgmt is None:
            return Result.not_found(f"Card {index} not found")

        result = self.shutdown(user)
        if result.status is Status.NOT_FOUND:
            logger.info(VM_NOTE)
            return Result.success(VM_NOTE)
        if not result.ok:
            return result

        for function in (user, mgmt):
            result = self.remove(function)
            if not result.ok:
                return result

        return Result.success(f"Card {index} is offline")

    def online(self) -> Result:
        """Rescan the root port hosting the accelerator."""
        bridge = self.find_root_port()
        if bridge is None:
            logger.error(
                "No root port hosts a %s:%s device",
                self.config.vendor_id,
                self.config.device_id,
            )
            return Result.not_found(
                f"No root port found for {self.config.vendor_id}:{self.config.device_id}"
            )

        return self.rescan(bridge)

    def run(self, offline_index: int | None = None, online: bool = False) -> Result:
        """Run the requested operations; offline completes before online starts."""
        if offline_index is None and not online:
            return Result(Status.INVALID_ARGUMENT, "Nothing to do: request offline and/or online")

        result = Result.success()
        if offline_index is not None:
            result = self.offline(offline_index)
            if not result.ok:
                return result

        if online:
            result = self.online()

        return result
