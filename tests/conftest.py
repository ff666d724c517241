#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Shared fixtures for the Dom.ru API tests.

Offline tests mount ScriptedAdapter on a real requests.Session, so request
preparation, auth hooks and the 401 replay all run through requests itself;
only the network is replaced by scripted responses.

License: MIT
"""

import io
import json
import threading
from http import HTTPStatus
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from domru_api_utils import Credentials, SessionClient

BASE_URL = "https://api.test"


class ScriptedBody(io.BytesIO):
    """Тело ответа; release_conn отмечает возврат соединения, как у urllib3"""
    released = False

    def release_conn(self):
        self.released = True


class ScriptedAdapter(BaseAdapter):
    """
    Транспорт с заранее заданными ответами.
    Ответы на один маршрут выдаются по очереди, последний повторяется.
    """
    def __init__(self):
        super().__init__()
        self.routes = {}
        self.requests = []
        self.responses = []
        self._lock = threading.Lock()

    def add(self, method, path, status=200, json_body=None, body=b"", headers=None):
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
            headers = {"Content-Type": "application/json", **(headers or {})}
        self.routes.setdefault((method, path), []).append((status, body, headers or {}))

    def sent(self, method=None, path=None):
        return [
            r for r in self.requests
            if (method is None or r.method == method) and (path is None or urlsplit(r.url).path == path)
        ]

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        path = urlsplit(request.url).path
        with self._lock:
            self.requests.append(request)
            queue = self.routes.get((request.method, path))
            if not queue:
                raise requests.ConnectionError(f"Нет маршрута {request.method} {path}", request=request)
            status, body, headers = queue.pop(0) if len(queue) > 1 else queue[0]

        response = requests.Response()
        response.status_code = status
        response.reason = HTTPStatus(status).phrase
        response.headers = CaseInsensitiveDict(headers)
        response.raw = ScriptedBody(body)
        response.url = request.url
        response.request = request
        response.connection = self
        response.encoding = "utf-8"
        with self._lock:
            self.responses.append(response)
        return response

    def close(self):
        pass


@pytest.fixture
def adapter():
    return ScriptedAdapter()


@pytest.fixture
def session(adapter):
    session = requests.Session()
    session.mount("https://", adapter)
    return session


@pytest.fixture
def credentials():
    return Credentials(
        operator_id=2,
        access_token="access-1",
        refresh_token="refresh-1",
        phone=79120000000,
        subscriber_id=100,
        account_id="590000000",
        place_id=5,
    )


@pytest.fixture
def anon_client(session):
    """Клиент без учётных данных"""
    client = SessionClient(base_url=BASE_URL, session=session)
    yield client
    client.close()


@pytest.fixture
def client(anon_client, credentials):
    """Клиент с установленными учётными данными"""
    anon_client.set_credentials(credentials)
    return anon_client


def make_place(place_id, *access_controls):
    return {"id": place_id, "place": {"id": place_id, "accessControls": list(access_controls), "cameras": []}}


def make_access_control(ac_id, forpost_group_id="0", name="Подъезд"):
    return {
        "id": ac_id,
        "name": name,
        "forpostGroupId": forpost_group_id,
        "forpostAccountId": None,
        "type": "SIP",
        "allowOpen": True,
        "allowVideo": True,
        "allowCallMobile": True,
        "entrances": [],
    }


def make_camera(camera_id, *group_ids, name="Камера"):
    return {
        "ID": camera_id,
        "Name": name,
        "ParentGroups": [{"ID": gid, "Name": f"Группа {gid}", "ParentID": None} for gid in group_ids],
        "State": 1,
    }
