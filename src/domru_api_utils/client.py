#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API Client Module

This module provides the SessionClient class for handling authentication and API
requests to the Dom.ru smart-home platform. It owns the session credentials,
signs every authenticated request, refreshes the token pair when the server
answers 401 and replays the failed request once.

License: MIT
"""

import logging
import threading
from typing import Any, Callable, List, Optional, Union, cast

import requests
from requests.auth import AuthBase
from requests.cookies import extract_cookies_to_jar

from . import oauth
from .access_control import AccessControlHandle
from .camera import CAMERA_NOT_FOUND, CameraHandle, SnapshotStream
from .exceptions import AuthError, NotFoundError, RemoteError
from .oauth import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, Credentials, LoginDetails, Phone
from .types import (
    CameraDescriptor,
    CameraStreamResponse,
    ForpostCamerasResponse,
    Operator,
    Place,
    SubscriberFinances,
    SubscriberPlacesResponse,
    SubscriberProfile,
    SubscriberProfileResponse,
    TokenBundle,
)

logger = logging.getLogger(__name__)

NOT_AUTHORIZED = "Нет авторизации"
INVALID_PLACE_OR_ACCESS_CONTROL = "Неправильный placeId или accessControlId"

RefreshCallback = Callable[[Credentials], None]


class RefreshNotifier:
    """Подписчики на событие обновления токенов."""
    def __init__(self):
        self._callbacks: List[RefreshCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: RefreshCallback) -> Callable[[], None]:
        with self._lock:
            self._callbacks.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: RefreshCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def notify(self, credentials: Credentials) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(credentials)
            except Exception:
                # ошибка подписчика не должна ломать повтор исходного запроса
                logger.exception(f"Ошибка в обработчике обновления токенов {callback!r}")


class BearerAuth(AuthBase):
    """
    Подписывает запрос токенами клиента и обрабатывает ответ 401.

    На 401 токены обновляются один раз, копия исходного запроса подписывается
    заново и отправляется повторно через тот же адаптер. Повторный ответ
    обработчик уже не видит, поэтому второй 401 возвращается вызывающему как есть.
    """
    def __init__(self, client: "SessionClient"):
        self._client = client

    @staticmethod
    def sign(request: requests.PreparedRequest, credentials: Credentials) -> None:
        request.headers["Authorization"] = f"Bearer {credentials.access_token}"
        request.headers["Operator"] = str(credentials.operator_id)

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        self.sign(request, self._client._signing_credentials())
        request.register_hook("response", self.handle_401)
        return request

    def handle_401(self, response: requests.Response, **kwargs) -> requests.Response:
        if response.status_code != 401:
            return response

        failed_token = response.request.headers.get("Authorization", "")[len("Bearer "):]
        logger.debug(f"401 на {response.request.method} {response.request.path_url}, обновляем токены")
        # Освобождаем соединение исходного ответа до обновления токенов
        response.content
        response.close()
        credentials = self._client._refresh_after_401(failed_token)

        prepared = response.request.copy()
        extract_cookies_to_jar(prepared._cookies, response.request, response.raw)
        prepared.prepare_cookies(prepared._cookies)
        self.sign(prepared, credentials)

        replayed = response.connection.send(prepared, **kwargs)
        replayed.history.append(response)
        replayed.request = prepared
        return replayed


class SessionClient:
    """
    Клиент Dom.ru API.

    Использование:
        client = SessionClient()
        details = client.get_login_details(79120000000)[0]
        client.send_confirmation(details)
        client.login(details, 1234)
        places = client.get_places()
    """
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._auth = BearerAuth(self)
        self._notifier = RefreshNotifier()
        self._refresh_lock = threading.Lock()
        self._credentials: Optional[Credentials] = None
        self._ready = False

    def __enter__(self) -> "SessionClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._notifier.clear()
        self._session.close()

    # Состояние сессии
    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    @property
    def access_token(self) -> Optional[str]:
        return self._credentials.access_token if self._credentials else None

    @property
    def refresh_token(self) -> Optional[str]:
        return self._credentials.refresh_token if self._credentials else None

    @property
    def operator_id(self) -> Optional[int]:
        return self._credentials.operator_id if self._credentials else None

    @property
    def ready(self) -> bool:
        return self._ready

    def set_credentials(self, credentials: Credentials) -> None:
        with self._refresh_lock:
            self._credentials = credentials
            self._ready = True

    def subscribe(self, callback: RefreshCallback) -> Callable[[], None]:
        """
        Подписаться на обновление токенов.
        Возвращает функцию отписки.
        """
        return self._notifier.subscribe(callback)

    def unsubscribe(self, callback: RefreshCallback) -> None:
        self._notifier.unsubscribe(callback)

    def _signing_credentials(self) -> Credentials:
        credentials = self._credentials
        if not self._ready or credentials is None:
            raise AuthError("NOT_READY", NOT_AUTHORIZED)
        return credentials

    def _refresh_after_401(self, failed_access_token: str) -> Credentials:
        with self._refresh_lock:
            current = self._credentials
            if not self._ready or current is None:
                raise AuthError("NOT_READY", NOT_AUTHORIZED)
            if current.access_token != failed_access_token:
                # другой поток уже обновил токены, пока мы ждали блокировку
                return current
            try:
                bundle = self._refresh_tokens()
            except Exception as e:
                self._ready = False
                logger.warning(f"Не удалось обновить токены: {e}")
                raise
            updated = current.with_tokens(bundle["accessToken"], bundle["refreshToken"])
            self._credentials = updated
        logger.info(f"Токены обновлены для оператора {updated.operator_id}")
        self._notifier.notify(updated)
        return updated

    def _refresh_tokens(self) -> TokenBundle:
        credentials = self._credentials
        if credentials is None:
            raise AuthError("NOT_READY", NOT_AUTHORIZED)
        return oauth.refresh_tokens(self._session, credentials, self.base_url, self.timeout)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Выполнить авторизованный запрос.
        Заголовки ставит BearerAuth; без авторизации запрос не отправляется.
        """
        kwargs.setdefault("timeout", self.timeout)
        logger.debug(f"{method} {path}")
        return self._session.request(method, f"{self.base_url}{path}", auth=self._auth, **kwargs)

    def _get_json(self, path: str) -> Any:
        response = self._request("GET", path)
        response.raise_for_status()
        return response.json()

    # Данные абонента
    def get_places(self) -> List[Place]:
        payload = cast(SubscriberPlacesResponse, self._get_json("/rest/v1/subscriberplaces"))
        return [item["place"] for item in payload["data"]]

    def get_profile(self) -> SubscriberProfile:
        payload = cast(SubscriberProfileResponse, self._get_json("/rest/v1/subscribers/profiles"))
        return payload["data"]

    def get_finances(self) -> SubscriberFinances:
        return cast(SubscriberFinances, self._get_json("/rest/v1/subscribers/profiles/finances"))

    def get_forpost_cameras(self) -> List[CameraDescriptor]:
        payload = cast(ForpostCamerasResponse, self._get_json("/rest/v1/forpost/cameras"))
        return payload["data"]

    # Камеры
    def get_camera_snapshot(self, camera_id: int) -> SnapshotStream:
        """
        Снимок камеры как поток байтов. Поток нужно закрыть
        (или использовать как контекстный менеджер).
        """
        response = self._request("GET", f"/rest/v1/forpost/cameras/{camera_id}/snapshots", stream=True)
        try:
            response.raise_for_status()
        except requests.HTTPError:
            response.close()
            raise
        return SnapshotStream(response)

    def get_camera_stream(self, camera_id: int) -> str:
        """
        Ссылка на живой поток камеры.

        Raises:
            RemoteError: сервер вернул поле Error.
            NotFoundError: камеры не существует (HTTP 500).
        """
        response = self._request("GET", f"/rest/v1/forpost/cameras/{camera_id}/video")
        oauth.raise_for_status(response, {500: NotFoundError("500", CAMERA_NOT_FOUND, f"camera_id={camera_id}")})
        data = cast(CameraStreamResponse, response.json()).get("data") or {}
        if data.get("Error"):
            raise RemoteError("REMOTE_ERROR", data["Error"], camera_id=camera_id)
        if not data.get("URL"):
            raise RemoteError("REMOTE_ERROR", "Сервер не вернул ссылку на поток", camera_id=camera_id)
        return data["URL"]

    # Устройства доступа
    def open_access_control(self, place_id: int, access_control_id: int) -> None:
        """
        Открыть дверь или калитку.

        Raises:
            NotFoundError: место или устройство не существуют (HTTP 500).
        """
        path = f"/rest/v1/places/{place_id}/accesscontrols/{access_control_id}/actions"
        response = self._request("POST", path, json={"name": "accessControlOpen"})
        oauth.raise_for_status(response, {
            500: NotFoundError("500", INVALID_PLACE_OR_ACCESS_CONTROL,
                               f"place_id={place_id} access_control_id={access_control_id}"),
        })
        logger.info(f"Устройство доступа {access_control_id} открыто")

    # Вход (без авторизации)
    def get_operators(self) -> List[Operator]:
        return oauth.get_operators(self._session, self.base_url, self.timeout)

    def get_login_details(self, phone: Phone) -> List[LoginDetails]:
        return oauth.get_login_details(self._session, phone, self.base_url, self.timeout)

    def send_confirmation(self, login_details: LoginDetails) -> None:
        oauth.send_confirmation(self._session, login_details, self.base_url, self.timeout)

    def login_confirmation(self, login_details: LoginDetails, code: Union[int, str]) -> TokenBundle:
        return oauth.login_confirmation(self._session, login_details, code, self.base_url, self.timeout)

    def login(self, login_details: LoginDetails, code: Union[int, str]) -> Credentials:
        """Подтвердить вход кодом и сохранить полученные учётные данные."""
        bundle = self.login_confirmation(login_details, code)
        credentials = Credentials.from_login(login_details, bundle)
        self.set_credentials(credentials)
        return credentials

    def access_control(self, access_control_id: int) -> AccessControlHandle:
        return AccessControlHandle(self, access_control_id)

    def camera(self, camera_id: int) -> CameraHandle:
        return CameraHandle(self, camera_id)
