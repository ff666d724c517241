#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API Access Control Module

This module provides the AccessControlHandle class: a handle on one access-control
device (door, gate, barrier) identified by its ID. The device is looked up in the
subscriber's places on every call, then opened or matched to its Forpost camera.

License: MIT
"""

import logging
from typing import TYPE_CHECKING, cast

from .camera import CAMERA_NOT_FOUND, CameraHandle
from .exceptions import NotFoundError
from .types import ResolvedAccessControl

if TYPE_CHECKING:
    from .client import SessionClient

logger = logging.getLogger(__name__)

ACCESS_CONTROL_NOT_FOUND = "Устройство доступа не существует"


class AccessControlHandle:
    """Устройство доступа по его ID."""
    def __init__(self, client: "SessionClient", access_control_id: int):
        self._client = client
        self._id = access_control_id

    @property
    def client(self) -> "SessionClient":
        return self._client

    @property
    def id(self) -> int:
        return self._id

    def resolve(self) -> ResolvedAccessControl:
        """
        Найти устройство среди всех мест абонента.

        ID считаются уникальными между местами, возвращается первое совпадение
        с добавленным полем placeId.

        Raises:
            NotFoundError: устройства нет ни в одном месте.
        """
        for place in self._client.get_places():
            for access_control in place.get("accessControls", []):
                if access_control["id"] == self._id:
                    return cast(ResolvedAccessControl, {**access_control, "placeId": place["id"]})
        raise NotFoundError("NOT_FOUND", ACCESS_CONTROL_NOT_FOUND, f"access_control_id={self._id}")

    def open(self) -> None:
        """
        Открыть устройство.

        Raises:
            NotFoundError: устройство не найдено или пропало между поиском и открытием.
        """
        access_control = self.resolve()
        try:
            self._client.open_access_control(access_control["placeId"], self._id)
        except NotFoundError as e:
            raise NotFoundError(e.code, ACCESS_CONTROL_NOT_FOUND, f"access_control_id={self._id}") from e

    def resolve_camera(self) -> CameraHandle:
        """
        Камера, в группах которой есть группа Forpost этого устройства.

        Raises:
            NotFoundError: устройство или камера не найдены.
        """
        forpost_group_id = self.resolve().get("forpostGroupId")
        try:
            group_id = int(forpost_group_id)
        except (TypeError, ValueError):
            raise NotFoundError("NOT_FOUND", CAMERA_NOT_FOUND, f"forpostGroupId={forpost_group_id!r}")

        for camera in self._client.get_forpost_cameras():
            if any(group["ID"] == group_id for group in camera.get("ParentGroups") or []):
                logger.debug(f"Устройству {self._id} соответствует камера {camera['ID']}")
                return CameraHandle(self._client, camera["ID"])
        raise NotFoundError("NOT_FOUND", CAMERA_NOT_FOUND, f"forpostGroupId={group_id}")

    def __repr__(self):
        return f"<AccessControlHandle id={self._id}>"
