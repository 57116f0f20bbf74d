"""Append-only manifest log of version edits."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from lsmdb.storage.version import SSTableMetadata, VersionSet

DEFAULT_MANIFEST_FILE_NAME = "MANIFEST.log"

_ADD_TABLE = 0
_REMOVE_TABLE = 1
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_MAX_RECORD_LEN = 0xFFFF_FFFF


class ManifestError(Exception):
    """A manifest record could not be encoded or decoded."""


@dataclass(frozen=True)
class AddTable:
    """Edit that adds a table to the version set."""

    table: SSTableMetadata


@dataclass(frozen=True)
class RemoveTable:
    """Edit that removes a table from a level."""

    level: int
    table_id: int


VersionEdit = Union[AddTable, RemoveTable]


def _encode_bytes(data: bytes) -> bytes:
    return _U64.pack(len(data)) + data


def _encode_edit(edit: VersionEdit) -> bytes:
    try:
        if isinstance(edit, AddTable):
            table = edit.table
            return b"".join(
                (
                    _U32.pack(_ADD_TABLE),
                    _U64.pack(table.table_id),
                    _U32.pack(table.level),
                    _encode_bytes(table.file_name.encode("utf-8")),
                    _encode_bytes(bytes(table.smallest_key)),
                    _encode_bytes(bytes(table.largest_key)),
                    _U64.pack(table.file_size_bytes),
                )
            )
        if isinstance(edit, RemoveTable):
            return _U32.pack(_REMOVE_TABLE) + _U32.pack(edit.level) + _U64.pack(edit.table_id)
    except struct.error as err:
        raise ManifestError(f"manifest encode error: {err}") from err
    raise ManifestError(f"manifest encode error: unknown edit {edit!r}")


class _Cursor:
    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self._offset = 0

    def take(self, count: int) -> bytes:
        end = self._offset + count
        if end > len(self._payload):
            raise ManifestError("manifest decode error: unexpected end of record")
        chunk = self._payload[self._offset:end]
        self._offset = end
        return chunk

    def u32(self) -> int:
        return _U32.unpack(self.take(4))[0]

    def u64(self) -> int:
        return _U64.unpack(self.take(8))[0]

    def blob(self) -> bytes:
        return self.take(self.u64())


def _decode_edit(payload: bytes) -> VersionEdit:
    cursor = _Cursor(payload)
    variant = cursor.u32()
    if variant == _ADD_TABLE:
        table_id = cursor.u64()
        level = cursor.u32()
        try:
            file_name = cursor.blob().decode("utf-8")
        except UnicodeDecodeError as err:
            raise ManifestError(f"manifest decode error: {err}") from err
        smallest_key = cursor.blob()
        largest_key = cursor.blob()
        file_size_bytes = cursor.u64()
        return AddTable(
            SSTableMetadata(
                table_id=table_id,
                level=level,
                file_name=file_name,
                smallest_key=smallest_key,
                largest_key=largest_key,
                file_size_bytes=file_size_bytes,
            )
        )
    if variant == _REMOVE_TABLE:
        level = cursor.u32()
        table_id = cursor.u64()
        return RemoveTable(level=level, table_id=table_id)
    raise ManifestError(f"manifest decode error: unknown edit variant {variant}")


def _apply_edit_to_version_set(version_set: VersionSet, edit: VersionEdit) -> None:
    if isinstance(edit, AddTable):
        version_set.add_table(edit.table)
    else:
        version_set.remove_table(edit.level, edit.table_id)


def _replay_manifest_file(path: Path) -> VersionSet:
    version_set = VersionSet()
    if not path.exists():
        return version_set

    data = path.read_bytes()
    cursor = 0
    while cursor + 4 <= len(data):
        (payload_len,) = _U32.unpack_from(data, cursor)
        cursor += 4
        end = cursor + payload_len
        if end > len(data):
            break  # truncated tail record
        payload = data[cursor:end]
        cursor = end
        _apply_edit_to_version_set(version_set, _decode_edit(payload))
    return version_set


class Manifest:
    """Durable log of version edits, replayed into a VersionSet on open."""

    def __init__(self, directory, file_name: str = DEFAULT_MANIFEST_FILE_NAME) -> None:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        self._path = directory / file_name
        self._version_set = _replay_manifest_file(self._path)
        self._file = open(self._path, "ab")

    def apply_edit(self, edit: VersionEdit) -> None:
        """Durably append an edit and apply it to the in-memory version set."""
        payload = _encode_edit(edit)
        if len(payload) > _MAX_RECORD_LEN:
            raise ManifestError("manifest encode error: manifest record too large")
        self._file.write(_U32.pack(len(payload)))
        self._file.write(payload)
        self.sync()
        _apply_edit_to_version_set(self._version_set, edit)

    @property
    def version_set(self) -> VersionSet:
        return self._version_set

    @property
    def path(self) -> Path:
        return self._path

    def sync(self) -> None:
        self._file.flush()
        os.fsync(self._file.fileno())

    def close(self) -> None:
        if not self._file.closed:
            self.sync()
            self._file.close()

    def __enter__(self) -> Manifest:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()