"""
Record Types

Folder and file metadata as stored in the record store. Records are keyed
by their full path; the ``path`` field of a record is always its parent
path.

File records are a closed set of kinds (:class:`FileKind`). Each kind
declares the extra attributes it may carry, and a record is validated
against its kind when it is constructed.

Author: Elxa Corporation
Version: 2.0.0
"""

import base64
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from elxafs.exceptions import InvalidRecordError
from .path_resolver import PathResolver


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class FolderType(Enum):
    """Folder categories."""
    SYSTEM = 'system'
    USER_ROOT = 'user-root'
    USER = 'user'


class FileKind(Enum):
    """File kinds."""
    TEXT = 'text'
    IMAGE = 'image'
    SETTINGS = 'settings'
    PROGRAM = 'program'
    SHORTCUT = 'shortcut'
    SLIDESHOW = 'slideshow'
    DATA = 'data'


@dataclass(frozen=True)
class KindSpec:
    """Attributes a file kind requires and allows."""
    required: frozenset = frozenset()
    optional: frozenset = frozenset()

    @property
    def allowed(self) -> frozenset:
        return self.required | self.optional


KIND_SPECS: dict[FileKind, KindSpec] = {
    FileKind.TEXT: KindSpec(optional=frozenset({'encoding'})),
    FileKind.IMAGE: KindSpec(optional=frozenset({'mime_type'})),
    FileKind.SETTINGS: KindSpec(),
    FileKind.PROGRAM: KindSpec(required=frozenset({'program'}), optional=frozenset({'icon'})),
    FileKind.SHORTCUT: KindSpec(required=frozenset({'target'}), optional=frozenset({'icon'})),
    FileKind.SLIDESHOW: KindSpec(optional=frozenset({'slide_count'})),
    FileKind.DATA: KindSpec(optional=frozenset({'schema'})),
}

# Kinds whose content never leaves the primary store.
PRIMARY_ONLY_KINDS = frozenset({FileKind.SETTINGS, FileKind.PROGRAM, FileKind.SHORTCUT})

IMAGE_EXTENSIONS = frozenset({'.png', '.jpg', '.jpeg', '.gif', '.bmp', '.webp', '.svg'})

# Persisted (camelCase) names of kind attributes.
_ATTRIBUTE_KEYS = {
    'encoding': 'encoding',
    'mime_type': 'mimeType',
    'program': 'program',
    'icon': 'icon',
    'target': 'target',
    'slide_count': 'slideCount',
    'schema': 'schema',
}
_ATTRIBUTE_NAMES = {v: k for k, v in _ATTRIBUTE_KEYS.items()}


def coerce_kind(kind: Any) -> FileKind:
    """Turn a kind name into a :class:`FileKind`."""
    if isinstance(kind, FileKind):
        return kind
    try:
        return FileKind(kind)
    except ValueError:
        raise InvalidRecordError(f"Unknown file kind: {kind!r}")


def content_size(content: Any) -> int:
    """Encoded size of a content value in bytes."""
    if content is None:
        return 0
    if isinstance(content, (bytes, bytearray)):
        return len(content)
    if isinstance(content, str):
        return len(content.encode('utf-8'))
    return len(json.dumps(content).encode('utf-8'))


def content_format(content: Any) -> str:
    """How a content value is written to the external tier."""
    if isinstance(content, (bytes, bytearray)):
        return 'bytes'
    if isinstance(content, str):
        return 'text'
    return 'json'


def canonical_name(name: str, kind: FileKind) -> str:
    """
    Canonical file name for a regular file of ``kind``.

    Images get an image extension (``.png`` unless they already have
    one), slideshows get ``.odp``. Other kinds keep the name as given.
    """
    stem, ext = PathResolver.splitext(name)
    if kind is FileKind.IMAGE:
        if ext.lower() in IMAGE_EXTENSIONS:
            return stem + ext.lower()
        return name + '.png'
    if kind is FileKind.SLIDESHOW:
        if ext.lower() == '.odp':
            return stem + '.odp'
        return name + '.odp'
    return name


@dataclass
class FolderRecord:
    """Metadata of a folder."""
    name: str
    path: str
    type: FolderType = FolderType.USER
    is_protected: bool = False
    is_hidden: bool = False
    created: str = field(default_factory=now_iso)
    modified: str = field(default_factory=now_iso)
    recycle_bin_metadata: Optional[dict[str, str]] = None

    def __post_init__(self):
        if not isinstance(self.type, FolderType):
            try:
                self.type = FolderType(self.type)
            except ValueError:
                raise InvalidRecordError(f"Unknown folder type: {self.type!r}")

    @property
    def full_path(self) -> str:
        return PathResolver.join(self.path, self.name)

    @property
    def is_system(self) -> bool:
        return self.type is FolderType.SYSTEM

    @property
    def is_user_root(self) -> bool:
        return self.type is FolderType.USER_ROOT

    def to_dict(self) -> dict[str, Any]:
        data = {
            'name': self.name,
            'path': self.path,
            'type': self.type.value,
            'isProtected': self.is_protected,
            'isHidden': self.is_hidden,
            'created': self.created,
            'modified': self.modified,
        }
        if self.recycle_bin_metadata:
            data['recycleBinMetadata'] = dict(self.recycle_bin_metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'FolderRecord':
        return cls(
            name=data['name'],
            path=data.get('path', '/'),
            type=data.get('type', FolderType.USER.value),
            is_protected=bool(data.get('isProtected', False)),
            is_hidden=bool(data.get('isHidden', False)),
            created=data.get('created') or now_iso(),
            modified=data.get('modified') or now_iso(),
            recycle_bin_metadata=data.get('recycleBinMetadata'),
        )


@dataclass
class FileRecord:
    """
    Metadata (and inline content) of a file.

    When ``externally_stored`` is set the content lives in the tiered
    content backend under the file's full path and ``content`` is
    ``None`` in the store.
    """
    name: str
    path: str
    kind: FileKind = FileKind.TEXT
    content: Any = None
    externally_stored: bool = False
    content_format: Optional[str] = None
    size: int = 0
    is_protected: bool = False
    is_hidden: bool = False
    created: str = field(default_factory=now_iso)
    modified: str = field(default_factory=now_iso)
    attributes: dict[str, Any] = field(default_factory=dict)
    recycle_bin_metadata: Optional[dict[str, str]] = None

    def __post_init__(self):
        self.kind = coerce_kind(self.kind)
        self.attributes = dict(self.attributes or {})
        spec = KIND_SPECS[self.kind]

        unknown = set(self.attributes) - spec.allowed
        if unknown:
            raise InvalidRecordError(
                f"Attributes not allowed for {self.kind.value} files: {sorted(unknown)}",
                context={'kind': self.kind.value}
            )

        missing = spec.required - set(self.attributes)
        if missing:
            raise InvalidRecordError(
                f"Missing attributes for {self.kind.value} files: {sorted(missing)}",
                context={'kind': self.kind.value}
            )

    @property
    def full_path(self) -> str:
        return PathResolver.join(self.path, self.name)

    @property
    def type(self) -> str:
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'name': self.name,
            'path': self.path,
            'type': self.kind.value,
            'isProtected': self.is_protected,
            'isHidden': self.is_hidden,
            'created': self.created,
            'modified': self.modified,
            'size': self.size,
        }
        if self.externally_stored:
            data['externallyStored'] = True
            if self.content_format:
                data['contentFormat'] = self.content_format
        elif isinstance(self.content, (bytes, bytearray)):
            data['content'] = base64.b64encode(bytes(self.content)).decode('ascii')
            data['contentEncoding'] = 'base64'
        else:
            data['content'] = self.content
        for attr, value in self.attributes.items():
            data[_ATTRIBUTE_KEYS[attr]] = value
        if self.recycle_bin_metadata:
            data['recycleBinMetadata'] = dict(self.recycle_bin_metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'FileRecord':
        content = data.get('content')
        if content is not None and data.get('contentEncoding') == 'base64':
            content = base64.b64decode(content)

        attributes = {
            _ATTRIBUTE_NAMES[key]: value
            for key, value in data.items()
            if key in _ATTRIBUTE_NAMES
        }

        return cls(
            name=data['name'],
            path=data.get('path', '/'),
            kind=data.get('type', FileKind.TEXT.value),
            content=content,
            externally_stored=bool(data.get('externallyStored', False)),
            content_format=data.get('contentFormat'),
            size=int(data.get('size', content_size(content))),
            is_protected=bool(data.get('isProtected', False)),
            is_hidden=bool(data.get('isHidden', False)),
            created=data.get('created') or now_iso(),
            modified=data.get('modified') or now_iso(),
            attributes=attributes,
            recycle_bin_metadata=data.get('recycleBinMetadata'),
        )


@dataclass
class FolderContents:
    """One level of a folder listing."""
    folders: list[FolderRecord] = field(default_factory=list)
    files: list[FileRecord] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.folders and not self.files

    def names(self) -> list[str]:
        return [f.name for f in self.folders] + [f.name for f in self.files]
