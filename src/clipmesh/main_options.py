"""Click parameter types for the clipmesh CLI."""
import click

from clipmesh.config import split_address


class PeerAddressList(click.ParamType):
    """Comma-separated list of host:port peer addresses.

    Converts to a tuple of validated address strings. Empty entries are
    ignored, so a trailing comma or an empty environment variable is fine.
    """

    name = "host:port[,host:port...]"

    def convert(self, value, param, ctx):
        """Split on commas and validate every address."""
        if isinstance(value, tuple):
            return value
        addresses = []
        for entry in str(value).split(","):
            entry = entry.strip()
            if not entry:
                continue
            try:
                split_address(entry)
            except ValueError as e:
                self.fail(str(e), param, ctx)
            addresses.append(entry)
        return tuple(addresses)


def flatten_peers(groups: tuple[tuple[str, ...], ...]) -> tuple[str, ...]:
    """Merge repeated --peers options, dropping duplicates in order.

    Args:
        groups: One tuple of addresses per --peers occurrence.

    Returns:
        Unique addresses in the order given.
    """
    seen: dict[str, None] = {}
    for group in groups:
        for address in group:
            seen.setdefault(address, None)
    return tuple(seen)


PEER_ADDRESS_LIST = PeerAddressList()
