"""
Path classification.

Maps filesystem paths under the watched root onto Kenku entities using the
fixed layout <root>/<playlists|soundboards>/<collection>/<item>. Paths that
do not fit the layout classify as not applicable and produce no remote call.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

from core.models.config import DirectoryLayout
from config.defaults import UNKNOWN_TITLE
from .events import FileSystemEvent

# Collection folders: letters, digits, spaces, hyphens
FOLDER_PATTERN = r'[a-zA-Z0-9 -]+'
# Items additionally allow the extension separator
FILE_PATTERN = r'[a-zA-Z0-9 .-]+'


class TargetKind(Enum):
    """Remote entity a path maps to"""
    TRACK = "track"
    SOUND = "sound"
    PLAYLIST = "playlist"
    SOUNDBOARD = "soundboard"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class ClassifiedTarget:
    """Result of classifying a path against a DirectoryLayout"""
    kind: TargetKind
    title: str = ""
    url: str = ""
    collection_url: Optional[str] = None

    @classmethod
    def not_applicable(cls) -> 'ClassifiedTarget':
        return cls(kind=TargetKind.NOT_APPLICABLE)

    @property
    def is_applicable(self) -> bool:
        return self.kind != TargetKind.NOT_APPLICABLE


def _root_prefix(layout: DirectoryLayout) -> str:
    return layout.root.rstrip('/')


def _branch_group(layout: DirectoryLayout) -> str:
    return f"({re.escape(layout.playlists_dir)}|{re.escape(layout.soundboards_dir)})"


def _match_directory(layout: DirectoryLayout, path: str) -> Optional[re.Match]:
    pattern = f"{re.escape(_root_prefix(layout))}/{_branch_group(layout)}/({FOLDER_PATTERN})"
    return re.fullmatch(pattern, path)


def _match_file(layout: DirectoryLayout, path: str) -> Optional[re.Match]:
    pattern = (
        f"{re.escape(_root_prefix(layout))}/{_branch_group(layout)}/"
        f"({FOLDER_PATTERN})/({FILE_PATTERN})"
    )
    return re.fullmatch(pattern, path)


def classify_directory(layout: DirectoryLayout, path: str) -> Optional[str]:
    """Return the collection name for a playlist/soundboard directory, else None"""
    match = _match_directory(layout, path)
    return match.group(2) if match else None


def classify_file(layout: DirectoryLayout, path: str) -> Optional[str]:
    """Return the item name for a track/sound file, else None"""
    match = _match_file(layout, path)
    return match.group(3) if match else None


def derive_title(name: str) -> str:
    """
    Strip everything from the first '.' onward.

    Falls back to UNKNOWN_TITLE when nothing but whitespace remains.
    """
    title = name.split('.', 1)[0]
    return title if title.strip() else UNKNOWN_TITLE


def clean_url(url: str) -> str:
    """Strip a single trailing '/'"""
    return url[:-1] if url.endswith('/') else url


def prepare_file_url(path: str) -> str:
    """Build the file:// url the remote service plays an item from"""
    return f"file://{quote(path, safe='')}"


def classify(layout: DirectoryLayout, event: FileSystemEvent) -> ClassifiedTarget:
    """
    Classify an event's path.

    Directory events are matched against the collection grammar, file events
    against the item grammar. The playlist/soundboard branch is chosen by the
    segment directly below root.
    """
    path = event.path

    if event.is_directory:
        match = _match_directory(layout, path)
        if not match:
            return ClassifiedTarget.not_applicable()

        branch, name = match.group(1), match.group(2)
        kind = TargetKind.PLAYLIST if branch == layout.playlists_dir else TargetKind.SOUNDBOARD
        return ClassifiedTarget(kind=kind, title=name, url=clean_url(path))

    match = _match_file(layout, path)
    if not match:
        return ClassifiedTarget.not_applicable()

    branch, collection, item = match.group(1), match.group(2), match.group(3)
    kind = TargetKind.TRACK if branch == layout.playlists_dir else TargetKind.SOUND
    collection_path = f"{_root_prefix(layout)}/{branch}/{collection}"
    return ClassifiedTarget(
        kind=kind,
        title=derive_title(item),
        url=clean_url(prepare_file_url(path)),
        collection_url=clean_url(collection_path)
    )
