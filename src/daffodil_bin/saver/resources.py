"""Resource lookup along the import path.

A resource path such as ``/com/example/format.dfdl.xsd`` is looked up the
way a class loader would: each import-path entry is tried in order and the
first directory or archive containing the file wins.
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SchemaResource:
    """A located schema resource.

    Attributes:
        name: The resource path as requested, starting with "/".
        entry: The import-path entry (directory or archive) containing it.
        uri: Absolute URI of the resource. Archive members use the
            ``jar:file:///archive.zip!/member`` form.
    """

    name: str
    entry: Path
    uri: str


def _member_name(name: str) -> str:
    return name.lstrip("/")


def find_resource(name: str, search_path: Iterable[str]) -> SchemaResource | None:
    """Find a resource on an import path.

    Args:
        name: Resource path starting with "/".
        search_path: Import-path entries, usually ``sys.path``.

    Returns:
        The located resource, or None if no entry contains it.
    """
    member = _member_name(name)
    if not member:
        return None

    for raw_entry in search_path:
        if not raw_entry:
            continue
        entry = Path(raw_entry)
        if entry.is_dir():
            candidate = entry / member
            if candidate.is_file():
                return SchemaResource(name=name, entry=entry, uri=candidate.resolve().as_uri())
        elif entry.is_file() and zipfile.is_zipfile(entry):
            with zipfile.ZipFile(entry) as archive:
                try:
                    archive.getinfo(member)
                except KeyError:
                    continue
            return SchemaResource(
                name=name,
                entry=entry,
                uri=f"jar:{entry.resolve().as_uri()}!/{member}",
            )
    return None
