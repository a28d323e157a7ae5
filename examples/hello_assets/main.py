"""Demo app reading files embedded by python-bundlefs.

Generate the bundles first (from this directory):

    python-bundlefs build -i assets --include-from assets_linux.txt --gzip
"""

import importlib
import sys

from python_bundlefs.target import host_bundle_keys


def main() -> None:
    """Run the demo app.
    """

    # Prefer the most specific bundle generated for this platform.
    bundle = None
    for key in host_bundle_keys():
        name: str = "bundled" if key == "default" else f"bundled{key}"
        try:
            bundle = importlib.import_module(name)
        except ModuleNotFoundError:
            continue
        break

    if bundle is None:
        sys.stderr.write("No bundle found; run python-bundlefs build first.\n")
        raise SystemExit(2)

    print(f"bundle: {bundle.BUNDLE_KEY}")
    print(bundle.fs.read_file("assets/greeting.txt").decode("utf-8"), end="")
    for info in bundle.fs.read_dir("assets"):
        kind: str = "dir " if info.is_dir else "file"
        print(f"{kind} {info.name} ({info.size} bytes)")


if __name__ == "__main__":
    main()
