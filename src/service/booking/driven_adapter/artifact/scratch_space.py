from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
import shutil
import tempfile

from src.platform.logging.loguru_io import Logger


@contextmanager
def scratch_directory(*, root: Path, booking_id: object) -> Iterator[Path]:
    """
    Private working directory for one render: ``<root>/<booking_id>-<random>/``.

    Concurrent renders of the same booking never share a path, and the
    directory is removed on every exit path, including errors.
    """
    root.mkdir(parents=True, exist_ok=True)
    workdir = Path(tempfile.mkdtemp(prefix=f'{booking_id}-', dir=root))
    try:
        yield workdir
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        if workdir.exists():
            Logger.base.warning(f'🧹 [TICKET] Could not remove scratch directory {workdir}')
