#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API Camera Module

This module provides the CameraHandle class, a handle on one Forpost camera
identified by its ID, and SnapshotStream, the lazily read byte stream returned
for camera snapshots.

Nothing is cached: every call fetches fresh data from the server.

License: MIT
"""

import logging
import os
from typing import TYPE_CHECKING, Iterator, Optional, Union

import requests

from .exceptions import NotFoundError
from .types import CameraDescriptor

if TYPE_CHECKING:
    from .client import SessionClient

logger = logging.getLogger(__name__)

CAMERA_NOT_FOUND = "Камера не существует"
DEFAULT_CHUNK_SIZE = 8192


class SnapshotStream:
    """
    Поток байтов снимка камеры поверх потокового ответа requests.

    Соединение освобождается после полного чтения, при ошибке чтения
    или явным вызовом close(). Поддерживает протокол контекстного менеджера:

        with camera.get_snapshot() as snapshot:
            snapshot.save("door.jpg")
    """
    def __init__(self, response: requests.Response):
        self._response = response
        self._closed = False

    @property
    def content_type(self) -> Optional[str]:
        return self._response.headers.get("Content-Type")

    @property
    def closed(self) -> bool:
        return self._closed

    def iter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        if self._closed:
            raise ValueError("Поток снимка уже закрыт")
        try:
            for chunk in self._response.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        finally:
            self.close()

    def read(self) -> bytes:
        return b"".join(self.iter_bytes())

    def save(self, path: Union[str, "os.PathLike[str]"], chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
        """Записать снимок в файл, вернуть число записанных байтов."""
        written = 0
        with open(path, "wb") as f:
            for chunk in self.iter_bytes(chunk_size):
                f.write(chunk)
                written += len(chunk)
        logger.debug(f"Снимок сохранён в {path} ({written} байт)")
        return written

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()

    def __enter__(self) -> "SnapshotStream":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self):
        return f"<SnapshotStream content_type='{self.content_type}' closed={self._closed}>"


class CameraHandle:
    """Камера Forpost по её ID."""
    def __init__(self, client: "SessionClient", camera_id: int):
        self._client = client
        self._id = camera_id

    @property
    def client(self) -> "SessionClient":
        return self._client

    @property
    def id(self) -> int:
        return self._id

    def resolve(self) -> CameraDescriptor:
        """
        Найти описание камеры в списке камер абонента.

        Raises:
            NotFoundError: камеры с таким ID нет.
        """
        for camera in self._client.get_forpost_cameras():
            if camera["ID"] == self._id:
                return camera
        raise NotFoundError("NOT_FOUND", CAMERA_NOT_FOUND, f"camera_id={self._id}")

    def get_snapshot(self) -> SnapshotStream:
        return self._client.get_camera_snapshot(self._id)

    def get_stream_url(self) -> str:
        return self._client.get_camera_stream(self._id)

    def __repr__(self):
        return f"<CameraHandle id={self._id}>"
