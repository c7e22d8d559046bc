"""
Version utility functions for RedisRecords.
"""

# (major, minor, micro, releaselevel, serial)
VERSION = (0, 3, 0, "dev", 1)


def get_version(version: tuple[int, int, int, str, int] | None = None) -> str:
    """
    Return a PEP 440-compliant version number.

    Args:
        version: Version tuple (major, minor, micro, releaselevel, serial).
                 Defaults to VERSION.

    Returns:
        PEP 440-compliant version string
    """
    major, minor, micro, releaselevel, serial = version or VERSION

    version_str = f"{major}.{minor}"
    if micro is not None:
        version_str += f".{micro}"

    if releaselevel == "dev":
        version_str += ".dev"
        if serial > 0:
            version_str += str(serial)
    elif releaselevel != "final":
        # a1, b2, rc1
        level = {"alpha": "a", "beta": "b", "rc": "rc"}.get(releaselevel, releaselevel)
        version_str += f"{level}{serial}"

    return version_str
