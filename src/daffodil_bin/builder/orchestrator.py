"""Saved processor build orchestration.

The orchestrator expands a BuildSpec into one BuildTarget per
(target version, artifact) pair, then launches one isolated child
interpreter per target. Each child gets an import path holding the
plugin's own code, exactly one library release and the project classpath,
in that order.

Everything that can be checked without running a child (duplicate labels,
version table lookups, library resolution) is checked for all pairs
before the first child starts.
"""

from __future__ import annotations

import hashlib
import json
import os
import shlex
import signal
import subprocess
import sys
import threading
from collections import Counter
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import FrameType

import structlog

from daffodil_bin.builder.cache import IncrementalCache, expand_watched
from daffodil_bin.builder.libraries import (
    DirectoryLibraryResolver,
    LibraryResolver,
    PipLibraryResolver,
)
from daffodil_bin.compat import api_generation, resolve_toolchain_version, toolchain_line
from daffodil_bin.errors import ArtifactBuildError, DuplicateLabelError
from daffodil_bin.naming import (
    artifact_file_name,
    classifier_name,
    ivy_config_name,
    versioned_config_path,
)
from daffodil_bin.observability import LOG_LEVEL_ENV_VAR, span
from daffodil_bin.saver import SAVER_MODULE
from daffodil_bin.schemas import ArtifactSpec, BuildSpec

logger = structlog.get_logger(__name__)

# Runs a command with an environment and returns its exit code
Launcher = Callable[[Sequence[str], Mapping[str, str]], int]

_ERROR_PREFIX = "[error]"
_WARNING_PREFIX = "[warning]"


@dataclass(frozen=True)
class BuildTarget:
    """One saved processor to build.

    Attributes:
        library_version: Target library version.
        artifact: The requested artifact.
        generation: Compile API generation of the target version.
        toolchain_line: Toolchain binary line of the target version.
        toolchain_version: Toolchain version, None if the platform is unknown.
        classifier: Classifier part of the file name.
        target_file: Output path of the saved processor.
        config_file: Configuration file handed to the child, if any.
        classpath: Ordered import path of the child.
    """

    library_version: str
    artifact: ArtifactSpec
    generation: int
    toolchain_line: str
    toolchain_version: str | None
    classifier: str
    target_file: Path
    config_file: Path | None
    classpath: tuple[Path, ...]

    def saver_arguments(self) -> list[str]:
        """Positional arguments of the saver entry point."""
        return [
            str(self.generation),
            self.artifact.schema_path,
            str(self.target_file),
            self.artifact.root or "",
            str(self.config_file) if self.config_file else "",
        ]


def plugin_location() -> Path:
    """Import-path entry holding the ``daffodil_bin`` package."""
    import daffodil_bin

    return Path(daffodil_bin.__file__).resolve().parent.parent


def check_unique_labels(artifacts: Iterable[ArtifactSpec]) -> None:
    """Reject artifact lists where two artifacts share a label.

    Raises:
        DuplicateLabelError: Naming every duplicated label.
    """
    counts = Counter(artifact.label for artifact in artifacts)
    duplicates = [label for label, count in counts.items() if count > 1]
    if duplicates:
        raise DuplicateLabelError(duplicates)


def build_classpath(
    plugin: Path,
    library_entries: Iterable[Path],
    project_classpath: Iterable[Path],
) -> tuple[Path, ...]:
    """Order the child import path: plugin, library, project.

    Later duplicates of an entry are dropped.
    """
    ordered: list[Path] = []
    for entry in (plugin, *library_entries, *project_classpath):
        if entry not in ordered:
            ordered.append(entry)
    return tuple(ordered)


@contextmanager
def _exit_on_sigterm() -> Iterator[None]:
    """Turn SIGTERM into SystemExit while the block runs.

    Only the main thread may install signal handlers; elsewhere the block
    runs unchanged.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _terminate(signum: int, frame: FrameType | None) -> None:
        sys.exit(128 + signum)

    previous = signal.signal(signal.SIGTERM, _terminate)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous if previous is not None else signal.SIG_DFL)


def launch_logged(command: Sequence[str], env: Mapping[str, str]) -> int:
    """Run a child and stream its merged output into the log.

    Lines starting with ``[error]`` are logged at error level, lines
    starting with ``[warning]`` at warning level, all others at info.
    Output is read as UTF-8; undecodable bytes are kept as escapes.
    If the calling process is interrupted or terminated the child is killed.

    Returns:
        The child's exit code.
    """
    with _exit_on_sigterm():
        process = subprocess.Popen(
            list(command),
            env=dict(env),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="backslashreplace",
            bufsize=1,
        )
        try:
            assert process.stdout is not None  # Type narrowing for mypy
            for line in process.stdout:
                log_child_line(line.rstrip("\n"))
            return process.wait()
        except BaseException:
            process.kill()
            process.wait()
            raise


def log_child_line(line: str) -> None:
    if not line:
        return
    if line.startswith(_ERROR_PREFIX):
        logger.error("saver_output", line=line[len(_ERROR_PREFIX) :].strip())
    elif line.startswith(_WARNING_PREFIX):
        logger.warning("saver_output", line=line[len(_WARNING_PREFIX) :].strip())
    else:
        logger.info("saver_output", line=line)


def default_resolver(spec: BuildSpec) -> LibraryResolver:
    """Library resolver selected by ``spec.library_resolver``."""
    if spec.library_resolver == "pip":
        return PipLibraryResolver(spec.libraries, distribution=spec.library_distribution)
    return DirectoryLibraryResolver(spec.libraries)


class BuildOrchestrator:
    """Build saved processors for every target version and artifact.

    Attributes:
        spec: The build description.
        resolver: Finds library entries for a target version.
        launcher: Runs one child and returns its exit code.
        platform_version: Platform version for toolchain selection, if known.
        python: Interpreter executable used for children.
        fail_fast: Stop at the first failed artifact.

    Example:
        >>> orchestrator = BuildOrchestrator(BuildSpec.from_yaml("daffodil-bin.yaml"))
        >>> orchestrator.run()
        [PosixPath('/project/target/dfdl-png-1.0.0-daffodil360.bin')]
    """

    def __init__(
        self,
        spec: BuildSpec,
        *,
        resolver: LibraryResolver | None = None,
        launcher: Launcher | None = None,
        platform_version: str | None = None,
        python: str = sys.executable,
        plugin: Path | None = None,
        fail_fast: bool | None = None,
    ) -> None:
        self.spec = spec
        self.resolver = resolver or default_resolver(spec)
        self.launcher = launcher or launch_logged
        self.platform_version = platform_version or spec.platform_version
        self.python = python
        self.plugin = plugin or plugin_location()
        self.fail_fast = spec.fail_fast if fail_fast is None else fail_fast
        self._log = logger.bind(project=spec.name, project_version=spec.version)

    def plan(self) -> list[BuildTarget]:
        """Expand the build description into targets, version by version.

        Raises:
            DuplicateLabelError: If two artifacts share a label.
            NoCompatibleMappingError: If a version has no table entry.
            LibraryResolutionError: If a version's library cannot be found.
        """
        artifacts = self.spec.artifacts
        versions = self.spec.target_versions
        check_unique_labels(artifacts)

        # Table lookups for every version before any library is resolved
        per_version = {
            version: (
                api_generation(version),
                toolchain_line(version),
                resolve_toolchain_version(version, self.platform_version)
                if self.platform_version
                else None,
            )
            for version in versions
        }

        targets: list[BuildTarget] = []
        for version in versions:
            generation, line, toolchain = per_version[version]
            classpath = build_classpath(
                self.plugin,
                self.resolver.resolve(version),
                self.spec.classpath,
            )
            for artifact in artifacts:
                targets.append(
                    BuildTarget(
                        library_version=version,
                        artifact=artifact,
                        generation=generation,
                        toolchain_line=line,
                        toolchain_version=toolchain,
                        classifier=classifier_name(artifact.label, version),
                        target_file=self.spec.target_dir
                        / artifact_file_name(
                            self.spec.name, self.spec.version, artifact.label, version
                        ),
                        config_file=versioned_config_path(artifact.config, version)
                        if artifact.config
                        else None,
                        classpath=classpath,
                    )
                )
        return targets

    def command(self, target: BuildTarget) -> list[str]:
        """Child interpreter command line for ``target``."""
        return [
            self.python,
            "-P",
            *self.spec.interpreter_options,
            "-m",
            SAVER_MODULE,
            *target.saver_arguments(),
        ]

    def environment(self, target: BuildTarget) -> dict[str, str]:
        """Child environment: inherited, with the import path and log level set."""
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(str(entry) for entry in target.classpath)
        env[LOG_LEVEL_ENV_VAR] = self.spec.log_level
        return env

    def export_command(self, target: BuildTarget) -> str:
        """Equivalent shell command of a child launch."""
        pythonpath = os.pathsep.join(str(entry) for entry in target.classpath)
        return (
            f"PYTHONPATH={shlex.quote(pythonpath)} "
            f"{LOG_LEVEL_ENV_VAR}={self.spec.log_level} "
            f"{shlex.join(self.command(target))}"
        )

    def watched_files(self) -> set[Path]:
        """Files whose changes trigger a rebuild.

        The project classpath, plus every artifact's config file and its
        version specific siblings.
        """
        watched = expand_watched(self.spec.classpath)
        configs: set[Path] = set()
        for artifact in self.spec.artifacts:
            if artifact.config is None:
                continue
            configs.add(artifact.config)
            configs.update(
                versioned_config_path(artifact.config, version)
                for version in self.spec.target_versions
            )
        return watched | expand_watched(configs)

    def fingerprint(self, targets: Sequence[BuildTarget]) -> str:
        """Digest of everything the targets ask the children to do."""
        payload = [
            {
                "command": self.command(target),
                "classpath": [str(entry) for entry in target.classpath],
            }
            for target in targets
        ]
        payload_bytes = json.dumps(payload, sort_keys=True).encode()
        return hashlib.sha256(payload_bytes).hexdigest()

    def run(self, *, use_cache: bool = True) -> list[Path]:
        """Build every target, or return the previous outputs if nothing changed.

        Args:
            use_cache: Skip the incremental cache and always build.

        Returns:
            Produced saved processors, sorted.

        Raises:
            ConfigurationError: Before any child is launched.
            ArtifactBuildError: If any child failed.
        """
        targets = self.plan()
        if not targets:
            self._log.warning(
                "nothing_to_build",
                artifacts=len(self.spec.artifacts),
                target_versions=len(self.spec.target_versions),
            )
            return []

        if not use_cache:
            return sorted(self.build(targets))

        cache = IncrementalCache(self.spec.state_dir, style=self.spec.cache_style)
        outputs = cache.cached(
            self.watched_files(),
            lambda: self.build(targets),
            fingerprint=self.fingerprint(targets),
        )
        return sorted(outputs)

    def build(self, targets: Sequence[BuildTarget]) -> set[Path]:
        """Launch one child per target.

        Raises:
            ArtifactBuildError: Naming every target that was not produced.
        """
        self.spec.target_dir.mkdir(parents=True, exist_ok=True)
        produced: set[Path] = set()
        failed: list[str] = []

        for target in targets:
            if self.build_one(target):
                produced.add(target.target_file)
                continue
            failed.append(target.target_file.name)
            if self.fail_fast:
                break

        if failed:
            raise ArtifactBuildError(failed)
        return produced

    def build_one(self, target: BuildTarget) -> bool:
        """Launch the child for one target; return whether it succeeded.

        A failed child's partial output is removed.
        """
        log = self._log.bind(
            target=target.target_file.name,
            library_version=target.library_version,
            config_name=ivy_config_name(target.library_version),
        )
        log.info(
            "saving_parser",
            schema=target.artifact.schema_path,
            root=target.artifact.root,
            generation=target.generation,
        )
        log.debug("saver_command", command=self.export_command(target))

        attributes = {
            "daffodil.version": target.library_version,
            "daffodil.classifier": target.classifier,
            "daffodil.generation": target.generation,
        }
        with span("save_parser", attributes=attributes) as s:
            try:
                exit_code: int | None = self.launcher(self.command(target), self.environment(target))
            except OSError as e:
                log.error("saver_launch_failed", error=str(e))
                exit_code = None
            s.set_attribute("daffodil.exit_code", -1 if exit_code is None else exit_code)

        if exit_code != 0:
            target.target_file.unlink(missing_ok=True)
            log.error("saving_parser_failed", exit_code=exit_code)
            return False

        log.info("parser_saved", path=str(target.target_file))
        return True
