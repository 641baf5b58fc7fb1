"""Incremental build cache.

Schema compilation is expensive, so saved processors are only rebuilt when
something they could depend on changes. The cache watches every file
reachable from the project classpath (directories are expanded
recursively). When the stamps of that file set, the build fingerprint and
the previous outputs are all unchanged, the previous output set is
returned without running the build. Otherwise the whole build runs again.

State is kept in a single JSON file. Only one build may use a state
directory at a time; nothing here locks it.
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger(__name__)

STATE_FILE_NAME = "inputs.json"

StampStyle = Literal["last_modified", "hash"]


class CacheState(BaseModel):
    """Recorded state of the last successful build.

    Attributes:
        fingerprint: Digest of the build requests that produced the outputs.
        inputs: Stamp of every watched file, keyed by absolute path.
        outputs: Absolute paths of the files the build produced.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    fingerprint: str = Field(default="", description="Digest of the build requests")
    inputs: dict[str, str] = Field(default_factory=dict, description="Watched file stamps")
    outputs: tuple[str, ...] = Field(default=(), description="Produced files")


def expand_watched(paths: Iterable[Path]) -> set[Path]:
    """Expand directories to every file below them.

    Paths that do not exist are skipped; files are kept as they are.
    """
    watched: set[Path] = set()
    for path in paths:
        if path.is_dir():
            watched.update(p.resolve() for p in path.rglob("*") if p.is_file())
        elif path.is_file():
            watched.add(path.resolve())
    return watched


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


class IncrementalCache:
    """Run a build only when its watched files changed.

    Attributes:
        state_dir: Directory holding the state file.
        style: "last_modified" stamps files by modification time and size,
            "hash" by content digest.

    Example:
        >>> cache = IncrementalCache(Path("target/.daffodil-bin-cache"))
        >>> outputs = cache.cached(watched, build, fingerprint="abc")
    """

    def __init__(self, state_dir: Path, style: StampStyle = "last_modified") -> None:
        self.state_dir = state_dir
        self.style = style

    @property
    def state_file(self) -> Path:
        return self.state_dir / STATE_FILE_NAME

    def stamp(self, path: Path) -> str:
        """Stamp one file according to the cache style."""
        if self.style == "hash":
            return _sha256(path)
        st = path.stat()
        return f"{st.st_mtime_ns}:{st.st_size}"

    def stamps(self, watched: Iterable[Path]) -> dict[str, str]:
        return {str(path): self.stamp(path) for path in sorted(watched)}

    def load(self) -> CacheState | None:
        """Load the recorded state, or None if there is none or it is unreadable."""
        if not self.state_file.exists():
            return None
        try:
            return CacheState.model_validate_json(self.state_file.read_text())
        except (OSError, ValidationError) as e:
            logger.warning("cache_state_unreadable", state_file=str(self.state_file), error=str(e))
            return None

    def save(self, state: CacheState) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.state_file.with_suffix(".tmp")
        tmp.write_text(state.model_dump_json(indent=2))
        os.replace(tmp, self.state_file)

    def invalidate(self) -> None:
        """Forget the recorded state so the next build runs."""
        self.state_file.unlink(missing_ok=True)

    def is_up_to_date(
        self,
        state: CacheState | None,
        stamps: dict[str, str],
        fingerprint: str,
    ) -> bool:
        if state is None:
            return False
        if state.fingerprint != fingerprint or state.inputs != stamps:
            return False
        return all(Path(output).exists() for output in state.outputs)

    def cached(
        self,
        watched: Iterable[Path],
        build: Callable[[], set[Path]],
        *,
        fingerprint: str = "",
    ) -> set[Path]:
        """Return the previous outputs if nothing changed, otherwise run ``build``.

        State is only recorded after ``build`` returns. If it raises, the
        old state is left alone and the next call builds again.

        Args:
            watched: Files whose changes trigger a rebuild.
            build: Runs the build and returns the produced files.
            fingerprint: Digest of the build requests.

        Returns:
            Produced (or previously produced) files.
        """
        stamps = self.stamps(watched)
        state = self.load()

        if self.is_up_to_date(state, stamps, fingerprint):
            assert state is not None  # Type narrowing for mypy
            logger.info("build_up_to_date", outputs=len(state.outputs))
            return {Path(output) for output in state.outputs}

        logger.debug("build_stale", watched=len(stamps))
        outputs = build()
        self.save(
            CacheState(
                fingerprint=fingerprint,
                inputs=stamps,
                outputs=tuple(sorted(str(output) for output in outputs)),
            )
        )
        return outputs
