"""Build pipeline: validate includes, partition, compress, emit."""

import logging
import pathlib
import time

from python_bundlefs.compression import DEFAULT_COMPRESSLEVEL, Compression, validate_compresslevel
from python_bundlefs.emit import DEFAULT_MODULE_NAME, bundle_module_name, write_bundles
from python_bundlefs.filesystem import FileSystem
from python_bundlefs.partition import IncludedFile, build_bundles, validate_includes


def generate(
    includes: list[IncludedFile],
    *,
    output_dir: pathlib.Path,
    root: pathlib.Path | None = None,
    compression: Compression = Compression.NONE,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
    base: str = DEFAULT_MODULE_NAME,
    logger: logging.Logger | None = None,
) -> list[pathlib.Path]:
    """Generate one bundle module per build constraint.

    Nothing is written unless every step succeeds.

    :param includes: Include declarations.
    :param output_dir: Directory that receives the generated modules.
    :param root: Directory the included paths are relative to (defaults to cwd).
    :param compression: Compression applied to compressible files.
    :param compresslevel: gzip level (0-9).
    :param base: Base name of the generated modules.
    :param logger: Optional logger for progress output.
    :returns: Paths of the generated modules.
    :raises BundleFSError: If any step fails.
    """

    if logger is None:
        logger = logging.getLogger("python_bundlefs")
    if root is None:
        root = pathlib.Path.cwd()

    validate_compresslevel(compresslevel)
    # Fail on a bad module name before walking anything.
    bundle_module_name(base, "default")

    t_total0: float = time.perf_counter()
    logger.info(f"python-bundlefs: root={root}")
    logger.info(f"python-bundlefs: output={output_dir}")
    logger.info(f"python-bundlefs: compression={compression.name.lower()} level={compresslevel}")

    validated: list[IncludedFile] = validate_includes(includes, root=root)

    t_walk0: float = time.perf_counter()
    bundles: dict[str, FileSystem] = build_bundles(validated, root=root, logger=logger)
    t_walk1: float = time.perf_counter()
    logger.info(f"python-bundlefs: built {len(bundles)} bundle(s) in {t_walk1 - t_walk0:.2f}s")

    t_comp0: float = time.perf_counter()
    for key in sorted(bundles):
        fs: FileSystem = bundles[key]
        n_compressed: int = fs.compress(compression, compresslevel=compresslevel)
        if logger.isEnabledFor(logging.DEBUG) is True:
            logger.debug(
                f"python-bundlefs: {key}: {len(fs.files)} entries, {n_compressed} gzip-compressed"
            )
    t_comp1: float = time.perf_counter()
    logger.info(f"python-bundlefs: encoded bundles in {t_comp1 - t_comp0:.2f}s")

    written: list[pathlib.Path] = write_bundles(bundles, output_dir=output_dir, base=base, logger=logger)

    t_total1: float = time.perf_counter()
    logger.info(f"python-bundlefs: done in {t_total1 - t_total0:.2f}s")
    return written
