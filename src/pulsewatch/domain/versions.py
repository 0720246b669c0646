"""Version catalogue for the client application.

Every version ever shipped is listed here in release order. The last entry
is the version this build runs and the target of every migration.
"""

from typing import Iterable, Iterator, Sequence

from pulsewatch.core.errors import ConfigurationError, UnknownVersionError

# Versions shipped so far. 1.0.0 stored raw pulses under "pulse-<id>" keys
# without a version marker; 2.0.0 keeps history on the server.
APP_VERSIONS: tuple[str, ...] = ("1.0.0", "2.0.0")


def parse_version(version: str) -> tuple[int, ...]:
    """Parse a dotted numeric version string into a comparable tuple.

    Raises:
        ConfigurationError: If the string is not dotted integers.
    """
    try:
        parts = tuple(int(part) for part in version.split("."))
    except (AttributeError, ValueError) as e:
        raise ConfigurationError(f"Malformed version string: {version!r}", e)
    if not parts or any(part < 0 for part in parts):
        raise ConfigurationError(f"Malformed version string: {version!r}")
    return parts


class VersionRegistry:
    """Immutable, strictly increasing sequence of application versions.

    Usage:
        registry = VersionRegistry(["1.0.0", "1.1.0", "2.0.0"])
        registry.target          # "2.0.0"
        registry.first           # "1.0.0"
        registry.index_of("1.1.0")  # 1
    """

    __slots__ = ("_versions", "_index")

    def __init__(self, versions: Iterable[str] = APP_VERSIONS) -> None:
        """Initialize the registry.

        Args:
            versions: Versions in release order.

        Raises:
            ConfigurationError: If empty, malformed, duplicated or not increasing.
        """
        ordered = tuple(str(v) for v in versions)
        if not ordered:
            raise ConfigurationError("Version registry cannot be empty")

        previous = None
        for version in ordered:
            parsed = parse_version(version)
            if previous is not None and parsed <= previous:
                raise ConfigurationError(
                    f"Version registry must be strictly increasing; {version!r} "
                    f"does not come after its predecessor"
                )
            previous = parsed

        self._versions = ordered
        self._index = {version: i for i, version in enumerate(ordered)}

    @property
    def versions(self) -> tuple[str, ...]:
        """All versions in release order."""
        return self._versions

    @property
    def target(self) -> str:
        """The version this build runs."""
        return self._versions[-1]

    @property
    def first(self) -> str:
        """The oldest known version (data from before version markers)."""
        return self._versions[0]

    def index_of(self, version: str) -> int:
        """Position of a version in release order.

        Raises:
            UnknownVersionError: If the version was never shipped.
        """
        try:
            return self._index[version]
        except KeyError:
            raise UnknownVersionError(version) from None

    def slice(self, start: int, stop: int) -> Sequence[str]:
        """Versions between two indexes, stop exclusive."""
        return self._versions[start:stop]

    def __contains__(self, version: object) -> bool:
        return version in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __repr__(self) -> str:
        return f"VersionRegistry({list(self._versions)!r})"
