"""Discovery of accelerator cards and their upstream root port."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from xbhotplug.backends.base import AttributeAccess
from xbhotplug.backends.sysfs import SysfsAccessor, validate_bdf
from xbhotplug.config import HotplugConfig
from xbhotplug.models import Bridge, FunctionRole, PciFunction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Card:
    """A physical accelerator card and the BDFs of its two functions.

    Both BDFs are always known (they are derived from the slot), but either
    function may be missing from sysfs, e.g. when the user function has been
    passed through to a virtual machine.
    """

    index: int
    slot: str  # DDDD:BB:DD
    mgmt_bdf: str
    user_bdf: str
    present: frozenset[str]

    def bdf(self, role: FunctionRole) -> str:
        """BDF of the function with the given role."""
        return self.user_bdf if role is FunctionRole.USER else self.mgmt_bdf

    def is_present(self, role: FunctionRole) -> bool:
        """Check if the function with the given role is visible in sysfs."""
        return self.bdf(role) in self.present

    def owns(self, bdf: str) -> bool:
        """Check if ``bdf`` addresses one of this card's functions."""
        return bdf.lower() in (self.mgmt_bdf, self.user_bdf)


def _split_bdf(bdf: str) -> tuple[str, int]:
    """Split ``DDDD:BB:DD.F`` into slot and function number."""
    slot, func = bdf.rsplit(".", 1)
    return slot, int(func, 16)


def discover_cards(
    config: HotplugConfig | None = None,
    accessor: AttributeAccess | None = None,
) -> list[Card]:
    """Discover accelerator cards in the system.

    Scans the sysfs PCI device directory for functions whose vendor ID
    matches the configured vendor and whose function number is the
    configured management or user function, and groups them by slot.

    Args:
        config: Hotplug configuration. Defaults are used if omitted.
        accessor: Attribute accessor. Defaults to SysfsAccessor.

    Returns:
        List of Card objects sorted by slot; list position is the card index.
    """
    config = config or HotplugConfig()
    accessor = accessor or SysfsAccessor()
    root = config.sysfs_root
    roles = {config.mgmt_function, config.user_function}

    if not root.is_dir():
        return []

    slots: dict[str, set[str]] = {}
    for device_dir in root.iterdir():
        name = device_dir.name.lower()
        try:
            validate_bdf(name)
        except ValueError:
            continue

        slot, func = _split_bdf(name)
        if func not in roles:
            continue

        vendor = accessor.read_attr(device_dir, "vendor").token
        if vendor != config.vendor_id:
            continue

        slots.setdefault(slot, set()).add(name)

    cards: list[Card] = []
    for index, slot in enumerate(sorted(slots)):
        cards.append(
            Card(
                index=index,
                slot=slot,
                mgmt_bdf=f"{slot}.{config.mgmt_function:x}",
                user_bdf=f"{slot}.{config.user_function:x}",
                present=frozenset(slots[slot]),
            )
        )
    return cards


def resolve_index(card_ref: str, cards: list[Card]) -> int | None:
    """Map a BDF or decimal card index to a card index.

    Args:
        card_ref: BDF of either function of a card (e.g. "0000:03:00.1"), or
            a card index (e.g. "0").
        cards: Cards as returned by discover_cards().

    Returns:
        The card index, or None if no card matches.

    Raises:
        ValueError: If card_ref is neither an index nor a well-formed BDF.
    """
    if card_ref.isdigit():
        index = int(card_ref)
        return index if index < len(cards) else None

    validate_bdf(card_ref)
    for card in cards:
        if card.owns(card_ref):
            return card.index
    return None


def get_function(
    cards: list[Card],
    index: int,
    role: FunctionRole,
    root: Path,
) -> PciFunction | None:
    """Build the descriptor for one function of a card.

    Args:
        cards: Cards as returned by discover_cards().
        index: Card index.
        role: Which function of the card.
        root: Sysfs PCI device directory.

    Returns:
        PciFunction descriptor, or None if the index is out of range.
    """
    if not 0 <= index < len(cards):
        return None
    bdf = cards[index].bdf(role)
    return PciFunction(bdf=bdf, index=index, role=role, sysfs_path=root / bdf)


def find_root_port(
    accessor: AttributeAccess,
    root: Path,
    vendor_id: str,
    device_id: str,
) -> Bridge | None:
    """Find the bridge hosting the accelerator function.

    Walks every top-level entry of the PCI device directory and inspects its
    immediate subdirectories. The first top-level entry with a subdirectory
    whose ``vendor`` and ``device`` attributes exactly equal the signature is
    returned. Subdirectories with missing or unreadable identity attributes
    never match.

    Enumeration order is whatever the filesystem yields and the first match
    wins; other matching bridges (multi-card systems) are not considered.

    Args:
        accessor: Attribute accessor used to read identity attributes.
        root: Sysfs PCI device directory.
        vendor_id: Expected vendor string, e.g. "0x10ee".
        device_id: Expected device string, e.g. "0x9134".

    Returns:
        Bridge for the matching top-level entry, or None if nothing matches.
    """
    if not root.is_dir():
        return None

    for entry in root.iterdir():
        try:
            children = list(entry.iterdir())
        except OSError as e:
            logger.debug("Skipping %s: %s", entry, e)
            continue

        for child in children:
            if not child.is_dir():
                continue

            vendor = accessor.read_attr(child, "vendor").token
            device = accessor.read_attr(child, "device").token
            if vendor == vendor_id and device == device_id:
                logger.info("Found root port %s hosting %s", entry.name, child.name)
                return Bridge(
                    path=entry,
                    endpoint=child.name,
                    endpoint_vendor=vendor_id,
                    endpoint_device=device_id,
                )

    return None
