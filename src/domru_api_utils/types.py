#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dom.ru API Response Types Module

Structural declarations of the JSON payloads returned by the Dom.ru REST API.
These are TypedDicts only; nothing here has behaviour.

License: MIT
"""

from typing import Any, List, Literal, Optional, TypedDict


# 1. Операторы (Operators)
class Coordinates(TypedDict):
    longitude: float
    latitude: float


class BoundingBox(TypedDict):
    minPoint: Coordinates
    maxPoint: Coordinates


class OperatorLocation(TypedDict):
    coordinates: BoundingBox
    accountIdPrefix: str


class Operator(TypedDict):
    id: int
    dispName: str
    location: Optional[OperatorLocation]
    authUrl: str
    infoUrl: str
    mobileFeatures: List[str]


class OperatorsResponse(TypedDict):
    data: List[Operator]


# 2. Авторизация (Auth)
class LoginDetailsRecord(TypedDict):
    operatorId: int
    subscriberId: int
    accountId: Optional[str]
    placeId: int
    address: str
    profileId: Optional[str]


LoginDetailsResponse = List[LoginDetailsRecord]


class TokenBundle(TypedDict):
    operatorId: int
    operatorName: str
    tokenType: Literal["Bearer"]
    accessToken: str
    expiresIn: Optional[int]
    refreshToken: str
    refreshExpiresIn: Optional[int]


# 3. Места абонента (Places)
class KladrAddress(TypedDict):
    index: Optional[str]
    region: Optional[str]
    district: Optional[str]
    city: Optional[str]
    locality: Optional[str]
    street: Optional[str]
    house: Optional[str]
    building: Optional[str]
    apartment: Optional[str]


class PlaceAddress(TypedDict):
    kladrAddress: KladrAddress
    kladrAddressString: str
    visibleAddress: str
    groupName: str


class AccessControlDescriptor(TypedDict):
    id: int
    name: str
    forpostGroupId: str
    forpostAccountId: Optional[str]
    type: str
    allowOpen: bool
    allowVideo: bool
    allowCallMobile: bool
    entrances: List[Any]


class ResolvedAccessControl(AccessControlDescriptor):
    placeId: int


class Place(TypedDict):
    id: int
    address: PlaceAddress
    location: Coordinates
    autoArmingState: bool
    autoArmingRadius: int
    previewAvailable: bool
    videoDownloadAvailable: bool
    controllers: List[Any]
    accessControls: List[AccessControlDescriptor]
    cameras: List[Any]


class PlaceSubscriber(TypedDict):
    id: int
    name: str
    accountId: str
    nickName: Optional[str]


class SubscriberPlace(TypedDict):
    id: int
    subscriberType: Literal["owner", "guest"]
    subscriberState: str
    place: Place
    subscriber: PlaceSubscriber
    guardCallOut: Optional[Any]
    payment: dict
    blocked: bool


class SubscriberPlacesResponse(TypedDict):
    data: List[SubscriberPlace]


# 4. Профиль и финансы (Profile, finances)
class SubscriberPhone(TypedDict):
    id: int
    number: str
    numberValid: bool


class SubscriberProfile(TypedDict):
    allowAddPhone: bool
    subscriber: PlaceSubscriber
    pushUserId: str
    callSelectedPlaceOnly: bool
    checkPhoneForSvcActivation: bool
    subscriberPhones: List[SubscriberPhone]


class SubscriberProfileResponse(TypedDict):
    data: SubscriberProfile


class SubscriberFinances(TypedDict):
    balance: Optional[float]
    blockType: str
    amountSum: Optional[float]
    targetDate: Optional[str]
    paymentLink: Optional[str]
    blocked: bool


# 5. Камеры Forpost (Cameras)
class ParentGroup(TypedDict):
    ID: int
    Name: str
    ParentID: Optional[int]


class CameraDescriptor(TypedDict):
    ID: int
    Name: str
    IsActive: int
    IsSound: int
    RecordType: int
    Quota: int
    MaxBandwidth: Optional[int]
    HomeMode: int
    Devices: Any
    ParentGroups: List[ParentGroup]
    State: int
    TimeZone: int
    MotionDetectorMode: str
    ParentID: str


class ForpostCamerasResponse(TypedDict):
    data: List[CameraDescriptor]


class CameraStreamData(TypedDict, total=False):
    URL: str
    Error: str


class CameraStreamResponse(TypedDict):
    data: CameraStreamData
