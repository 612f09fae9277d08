"""
Schema — Pydantic models for build inputs and the build receipt.

Inputs (supplied by upstream collaborators):
  Project        language standard, include dirs, pkg-config packages,
                 extra flags, foreign object sources
  Artifact       what to link (library, executable, test or header)
  GeneratedUnit  one emitted translation unit plus every file that
                 contributed to it

Output:
  BuildReceipt   written once per successful build invocation.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from native_make import PACKAGE_NAME, SCHEMA_VERSION, __version__


def now_iso() -> str:
    """Current UTC time as ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Inputs
# =============================================================================

class ArtifactKind(str, Enum):
    """Kind of final build output."""
    LIBRARY = "lib"
    EXECUTABLE = "exe"
    TEST = "test"
    HEADER = "header"


class Artifact(BaseModel):
    """The requested build output. Never mutated once a build starts."""
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ArtifactKind


class Project(BaseModel):
    """Structured project configuration."""
    model_config = ConfigDict(frozen=True)

    std: Optional[str] = None
    cincludes: List[str] = Field(default_factory=list)
    pkgconfig: List[str] = Field(default_factory=list)
    cflags: List[str] = Field(default_factory=list)
    lflags: List[str] = Field(default_factory=list)
    cobjects: List[str] = Field(default_factory=list)


class GeneratedUnit(BaseModel):
    """A translation unit produced by the code emitter."""
    model_config = ConfigDict(frozen=True)

    name: str
    filepath: str
    # Every file that contributed to generation; must be exhaustive
    sources: List[str] = Field(default_factory=list)


class BuildRequest(BaseModel):
    """Everything one build invocation needs."""
    project: Project = Field(default_factory=Project)
    artifact: Artifact
    units: List[GeneratedUnit] = Field(default_factory=list)


# =============================================================================
# Receipt
# =============================================================================

class CompileUnitResult(BaseModel):
    """Result of one executed compile step."""
    source_path: str
    object_path: str
    exit_code: int
    duration_ms: int = 0


class LinkPhase(BaseModel):
    """Link invocation: all objects → artifact."""
    command: str = ""
    exit_code: int = -1
    duration_ms: int = 0


class ElfMeta(BaseModel):
    """Header facts of an ELF artifact."""
    elf_type: Optional[str] = None
    arch: Optional[str] = None
    build_id: Optional[str] = None


class ArtifactMeta(BaseModel):
    """Metadata for the linked artifact."""
    name: str
    kind: ArtifactKind
    path: str
    sha256: str
    size_bytes: int
    elf: Optional[ElfMeta] = None


class BuildReceipt(BaseModel):
    """One receipt per successful build invocation."""
    package_name: str = PACKAGE_NAME
    package_version: str = __version__
    schema_version: str = SCHEMA_VERSION
    profile_id: str
    compiler: str
    created_at: str
    finished_at: str
    compiled: List[CompileUnitResult] = Field(default_factory=list)
    cached_objects: List[str] = Field(default_factory=list)
    link: LinkPhase = Field(default_factory=LinkPhase)
    artifact: ArtifactMeta
