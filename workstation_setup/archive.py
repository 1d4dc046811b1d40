"""
Unpacking downloaded archives.

Each helper extracts next to the archive and deletes the archive once the
extraction succeeded. Member names from the archive are never used as
paths as-is: tar members are written under their base name, and zip
extraction relies on ``ZipFile.extract``'s path sanitising.
"""

import gzip
import logging
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Optional, Sequence, Union

from workstation_setup.errors import UnpackError

logger = logging.getLogger(__name__)


def _find_member(tar: tarfile.TarFile, member: str) -> tarfile.TarInfo:
    try:
        info = tar.getmember(member)
    except KeyError:
        info = None
    if info is None or not info.isfile():
        candidates = [m for m in tar.getmembers() if m.isfile() and Path(m.name).name == member]
        if not candidates:
            raise UnpackError(f"{member} not found in {tar.name}")
        info = candidates[0]
    return info


def unpack_tar(archive: Union[str, Path], member: str) -> Path:
    """
    Extract the single file ``member`` from a (possibly compressed) tar
    archive into the archive's directory and return its path.
    """
    archive = Path(archive)
    logger.debug(f"Extracting {member} from {archive}")
    try:
        if archive.name == Path(member).name:
            # The member would be written over the archive being read
            archive = archive.rename(archive.with_name(f"{archive.name}.download"))
        with tarfile.open(archive, "r:*") as tar:
            info = _find_member(tar, member)
            source = tar.extractfile(info)
            if source is None:
                raise UnpackError(f"{info.name} in {archive} is not a regular file")
            target = archive.parent / Path(info.name).name
            with source, open(target, "wb") as out:
                shutil.copyfileobj(source, out)
        archive.unlink()
    except (tarfile.TarError, EOFError, OSError) as e:
        raise UnpackError(f"Could not extract {member} from {archive}: {e}") from e
    return target


def unpack_zip(archive: Union[str, Path], members: Optional[Sequence[str]] = None) -> Path:
    """
    Extract a zip archive into a directory named after it (minus its
    extension) and return that directory. ``members`` limits the extraction
    to the named entries.
    """
    archive = Path(archive)
    target = archive.with_suffix("")
    logger.debug(f"Unzipping {archive} into {target}")
    try:
        with zipfile.ZipFile(archive) as zf:
            names = zf.namelist()
            if members is not None:
                missing = [m for m in members if m not in names]
                if missing:
                    raise UnpackError(f"{', '.join(missing)} not found in {archive}")
                names = list(members)
            target.mkdir(parents=True, exist_ok=True)
            for name in names:
                zf.extract(name, target)
        archive.unlink()
    except (zipfile.BadZipFile, OSError) as e:
        raise UnpackError(f"Could not unzip {archive}: {e}") from e
    return target


def unpack_gzip_single(archive: Union[str, Path]) -> Path:
    """Decompress a single-file gzip archive, dropping its final extension."""
    archive = Path(archive)
    target = archive.with_suffix("")
    if target == archive:
        raise UnpackError(f"Cannot derive an output name from {archive}")
    logger.debug(f"Decompressing {archive} to {target}")
    try:
        with gzip.open(archive, "rb") as f_in, open(target, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
        archive.unlink()
    except (gzip.BadGzipFile, EOFError, OSError) as e:
        target.unlink(missing_ok=True)
        raise UnpackError(f"Could not decompress {archive}: {e}") from e
    return target
