"""Individual sysfs-driven hotplug steps.

Each step performs its writes and reads through an AttributeAccess and
reports a Result; none of them retry on failure.
"""

import logging
import time
from collections.abc import Callable

from xbhotplug.backends.base import AttributeAccess
from xbhotplug.config import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL
from xbhotplug.models import Bridge, PciFunction, PollState, Result, Status

logger = logging.getLogger(__name__)

SHUTDOWN_ATTR = "shutdown"
REMOVE_ATTR = "remove"
RESCAN_ATTR = "rescan"

TRIGGER_VALUE = "1"
SHUTDOWN_COMPLETE = 1


def shutdown_function(
    accessor: AttributeAccess,
    function: PciFunction,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    poll_attempts: int = DEFAULT_POLL_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> Result:
    """Gracefully shut down a function and wait for the acknowledgement.

    Writes the trigger to the ``shutdown`` attribute, then sleeps and reads
    the attribute back until it reports completion or ``poll_attempts``
    reads have been made.

    Args:
        accessor: Attribute accessor.
        function: Function to shut down (normally the user function).
        poll_interval: Seconds to sleep before each status read.
        poll_attempts: Maximum number of status reads.
        sleep: Blocking sleep callable.

    Returns:
        SUCCESS when the device acknowledged shutdown, NOT_FOUND when the
        function has no shutdown attribute, FAILED on any write or read
        error, TIMED_OUT when the budget ran out.
    """
    device_dir = function.sysfs_path
    if not accessor.has_attr(device_dir, SHUTDOWN_ATTR):
        return Result.not_found(f"No shutdown attribute for {function.bdf}")

    logger.info("Shutting down %s", function)
    try:
        accessor.write_attr(device_dir, SHUTDOWN_ATTR, TRIGGER_VALUE)
    except OSError as e:
        logger.error("Failed to trigger shutdown of %s: %s", function.bdf, e)
        return Result.failed(f"Failed to trigger shutdown of {function.bdf}: {e}", e)

    state = PollState()
    for _ in range(poll_attempts):
        sleep(poll_interval)
        state.polls += 1

        status = accessor.read_attr(device_dir, SHUTDOWN_ATTR)
        if not status.ok:
            reason = status.error or "attribute disappeared"
            logger.error("Failed to read shutdown status of %s: %s", function.bdf, reason)
            return Result.failed(
                f"Failed to read shutdown status of {function.bdf}: {reason}",
                status.error,
            )

        try:
            state.last_status = int(status.token or "")
        except ValueError:
            logger.error("Unexpected shutdown status %r from %s", status.value, function.bdf)
            return Result.failed(f"Unexpected shutdown status {status.value!r} from {function.bdf}")

        logger.debug(
            "Shutdown poll %d/%d for %s: status %d",
            state.polls,
            poll_attempts,
            function.bdf,
            state.last_status,
        )
        if state.last_status == SHUTDOWN_COMPLETE:
            logger.info("%s shut down after %d poll(s)", function.bdf, state.polls)
            return Result.success(f"{function.bdf} shut down")

    logger.error("Timed out waiting for %s to shut down", function.bdf)
    return Result(
        Status.TIMED_OUT,
        f"{function.bdf} did not acknowledge shutdown after {state.polls} poll(s)"
        f" (last status {state.last_status})",
    )


def remove_function(accessor: AttributeAccess, function: PciFunction) -> Result:
    """Remove a function from the PCI bus via its ``remove`` attribute.

    Removal is synchronous from the caller's point of view; no polling.
    """
    try:
        accessor.write_attr(function.sysfs_path, REMOVE_ATTR, TRIGGER_VALUE)
    except OSError as e:
        logger.error("Failed to remove %s: %s", function.bdf, e)
        return Result.failed(f"Failed to remove {function.bdf}: {e}", e)

    logger.info("Removed %s", function)
    return Result.success(f"Removed {function.bdf}")


def rescan_bridge(accessor: AttributeAccess, bridge: Bridge | None) -> Result:
    """Trigger a rescan of the bus below ``bridge``.

    Returns:
        NOT_FOUND if there is no usable bridge path, FAILED carrying the OS
        error if the rescan attribute cannot be opened or written, SUCCESS
        otherwise.
    """
    if bridge is None or str(bridge.path) in ("", "."):
        return Result.not_found("No root port to rescan")

    path = bridge.path / RESCAN_ATTR
    try:
        accessor.write_attr(bridge.path, RESCAN_ATTR, TRIGGER_VALUE)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e.strerror or e)
        return Result.failed(f"Failed to write {path}: {e.strerror or e}", e)

    logger.info("Rescanned %s", bridge.name)
    return Result.success(f"Rescanned {bridge.name}")
