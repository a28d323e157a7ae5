"""Bundle key resolution.

A bundle key names the operating system / CPU architecture constraint a
bundle is built for. It is derived from the name of the file that declared an
include, the same way build-constrained source files are named:

- ``net.py`` -> ``default``
- ``net_linux.py`` -> ``_linux``
- ``net_amd64.py`` -> ``_amd64``
- ``net_windows_amd64.py`` -> ``_windows_amd64``
"""

from dataclasses import dataclass
import os
import platform

DEFAULT_KEY: str = "default"

OPERATING_SYSTEMS: tuple[str, ...] = (
    "linux",
    "windows",
    "darwin",
    "freebsd",
    "js",
    "plan9",
    "dragonfly",
    "openbsd",
    "solaris",
    "aix",
    "android",
)

ARCHS: tuple[str, ...] = (
    "ppc64",
    "386",
    "amd64",
    "wasm",
    "arm",
    "ppc64le",
    "mips",
    "mips64",
    "mips64le",
    "mipsle",
    "s390x",
    "arm64",
)


@dataclass(frozen=True, slots=True)
class BundleTarget:
    """Build constraint of a bundle.

    :ivar os: Operating system name, or ``None`` for any.
    :ivar arch: Architecture name, or ``None`` for any.
    """

    os: str | None
    arch: str | None

    @property
    def key(self) -> str:
        parts: list[str] = [p for p in (self.os, self.arch) if p is not None]
        if len(parts) == 0:
            return DEFAULT_KEY
        return "_" + "_".join(parts)


def resolve_target(declaring_file: str) -> BundleTarget:
    """Derive the build constraint from a declaring file name.

    Only the base name without its extension is inspected. An ``_<arch>``
    suffix is matched first; an ``_<os>`` suffix is then matched either at the
    very end or right before the arch suffix.

    :param declaring_file: Path or name of the file that declared the include.
    :returns: The resolved target.
    """

    stem: str = os.path.splitext(os.path.basename(declaring_file))[0]

    arch: str | None = None
    for candidate in ARCHS:
        if stem.endswith("_" + candidate) is True:
            arch = candidate

    remainder: str = stem
    if arch is not None:
        remainder = stem[0 : len(stem) - len(arch) - 1]

    os_name: str | None = None
    for candidate in OPERATING_SYSTEMS:
        if remainder.endswith("_" + candidate) is True:
            os_name = candidate

    return BundleTarget(os=os_name, arch=arch)


def bundle_key(declaring_file: str) -> str:
    """Return the bundle key for a declaring file name.

    :param declaring_file: Path or name of the file that declared the include.
    :returns: ``default``, or a key such as ``_linux`` / ``_windows_amd64``.
    """

    return resolve_target(declaring_file).key


_SYSTEM_MAP: dict[str, str] = {
    "linux": "linux",
    "windows": "windows",
    "darwin": "darwin",
    "freebsd": "freebsd",
    "openbsd": "openbsd",
    "dragonfly": "dragonfly",
    "sunos": "solaris",
    "aix": "aix",
    "android": "android",
    "emscripten": "js",
}

_MACHINE_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "arm": "arm",
    "ppc64": "ppc64",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "mips": "mips",
    "mipsel": "mipsle",
    "mips64": "mips64",
    "mips64el": "mips64le",
    "wasm32": "wasm",
}


def host_target(*, system: str | None = None, machine: str | None = None) -> BundleTarget:
    """Map a platform to the OS / arch vocabulary used by bundle keys.

    :param system: ``platform.system()`` style name; defaults to the host.
    :param machine: ``platform.machine()`` style name; defaults to the host.
    :returns: Target with unknown parts left as ``None``.
    """

    if system is None:
        system = platform.system()
    if machine is None:
        machine = platform.machine()

    return BundleTarget(
        os=_SYSTEM_MAP.get(system.strip().lower()),
        arch=_MACHINE_MAP.get(machine.strip().lower()),
    )


def host_bundle_keys(*, system: str | None = None, machine: str | None = None) -> list[str]:
    """Return candidate bundle keys for a platform, most specific first.

    :param system: ``platform.system()`` style name; defaults to the host.
    :param machine: ``platform.machine()`` style name; defaults to the host.
    :returns: Keys like ``["_linux_amd64", "_linux", "_amd64", "default"]``.
    """

    target: BundleTarget = host_target(system=system, machine=machine)
    candidates: list[BundleTarget] = [
        target,
        BundleTarget(os=target.os, arch=None),
        BundleTarget(os=None, arch=target.arch),
    ]

    keys: list[str] = []
    for candidate in candidates:
        key: str = candidate.key
        if key != DEFAULT_KEY and key not in keys:
            keys.append(key)
    keys.append(DEFAULT_KEY)
    return keys
