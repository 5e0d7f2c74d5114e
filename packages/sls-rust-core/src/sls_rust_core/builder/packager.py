"""Artifact packaging.

Repackages a compiled executable into a single-entry zip named after the
project, with the entry renamed to ``bootstrap`` as the provided runtimes
require. Steps run strictly in order inside the toolchain's release
directory; the first failing step aborts the package stage.
"""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

logger = structlog.get_logger(__name__)

BOOTSTRAP_ENTRY = "bootstrap"
"""Fixed entry name expected by the deployment runtime."""


class ArtifactPackager:
    """Packages compiled executables into deployable zip archives.

    Re-running over the leftovers of a previous run is safe: stale archives,
    stale ``bootstrap`` files and the staging directory are removed first.
    A stale file that does not exist is not an error.

    Example:
        >>> packager = ArtifactPackager()
        >>> packager.package(Path("hello/target/aarch64-unknown-linux-musl/release"), "hello")
        PosixPath('hello/target/aarch64-unknown-linux-musl/release/hello.zip')
    """

    def __init__(self, log: BoundLogger | None = None) -> None:
        self._log = log or logger.bind(component="artifact_packager")

    def package(self, release_dir: Path, project_name: str) -> Path:
        """Package ``release_dir/project_name`` into ``release_dir/project_name.zip``.

        Args:
            release_dir: Toolchain output directory holding the executable.
            project_name: Executable name.

        Returns:
            Path of the finished archive.

        Raises:
            OSError: If any step fails (e.g., the executable does not exist).
        """
        staging_dir = release_dir / f"{project_name}-dir"
        archive_name = f"{project_name}.zip"
        log = self._log.bind(project=project_name, release_dir=str(release_dir))

        # Clear leftovers of a previous run
        (release_dir / archive_name).unlink(missing_ok=True)
        (release_dir / BOOTSTRAP_ENTRY).unlink(missing_ok=True)
        if staging_dir.exists():
            shutil.rmtree(staging_dir)
        log.debug("stale_artifacts_removed")

        staging_dir.mkdir()
        staged = (release_dir / project_name).rename(staging_dir / project_name)
        bootstrap = staged.rename(staging_dir / BOOTSTRAP_ENTRY)

        staged_archive = staging_dir / archive_name
        with zipfile.ZipFile(staged_archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.write(bootstrap, arcname=BOOTSTRAP_ENTRY)

        archive = staged_archive.replace(release_dir / archive_name)
        log.debug("artifact_packaged", archive=str(archive))
        return archive
