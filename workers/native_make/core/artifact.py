"""
Artifact inspection — hash, size and ELF header facts of the linked output.

Non-ELF outputs (Mach-O, PE, or a stand-in from a fake toolchain) are
still recorded, just without ELF metadata.
"""
import hashlib
import logging
from pathlib import Path
from typing import Optional

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from native_make.io.schema import Artifact, ArtifactMeta, ElfMeta

logger = logging.getLogger(__name__)


def hash_file(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def _read_build_id(elffile: ELFFile) -> Optional[str]:
    section = elffile.get_section_by_name(".note.gnu.build-id")
    if section is None:
        return None
    for note in section.iter_notes():
        if note["n_type"] == "NT_GNU_BUILD_ID":
            return note["n_desc"]
    return None


def read_elf_meta(path: Path) -> Optional[ElfMeta]:
    """ELF type, machine and build-id, or None if *path* is not ELF."""
    with open(path, "rb") as f:
        try:
            elffile = ELFFile(f)
        except ELFError as e:
            logger.debug("%s is not an ELF file: %s", path, e)
            return None
        return ElfMeta(
            elf_type=elffile.header["e_type"],
            arch=elffile.header["e_machine"],
            build_id=_read_build_id(elffile),
        )


def describe_artifact(artifact: Artifact, path: Path) -> ArtifactMeta:
    return ArtifactMeta(
        name=artifact.name,
        kind=artifact.kind,
        path=path.as_posix(),
        sha256=hash_file(path),
        size_bytes=path.stat().st_size,
        elf=read_elf_meta(path),
    )
