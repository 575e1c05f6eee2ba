"""Pydantic models for the backend request/response envelopes.

Field aliases mirror the backend revision this client talks to and must not be
renamed: request envelopes are camelCase, operation inputs are PascalCase,
onboarding outputs are camelCase and offer list elements are PascalCase.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

VIEW_NAME = "RegistrationFlow.OnBoarding"
OFFERS_CACHE_REFRESH_STAMP = "2022-01-01T10:10:10.101Z"
DEFAULT_LOCALE = "pl-PL"

T = TypeVar("T")


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RequestVersionInfo(_WireModel):
    module_version: str = Field(alias="moduleVersion")
    api_version: str = Field(alias="apiVersion")


class RequestEnvelope(_WireModel):
    version_info: RequestVersionInfo = Field(alias="versionInfo")
    view_name: str = Field(default=VIEW_NAME, alias="viewName")
    input_parameters: dict[str, Any] = Field(alias="inputParameters")


class ResponseVersionInfo(_WireModel):
    has_module_version_changed: bool = Field(
        default=False,
        alias="hasModuleVersionChanged",
    )
    has_api_version_changed: bool = Field(default=False, alias="hasApiVersionChanged")


class ListWrapper(_WireModel, Generic[T]):
    items: list[T] = Field(default_factory=list, alias="List")


# Operation inputs.


class PhoneNumberInput(_WireModel):
    phone_number: str = Field(alias="PhoneNumber")


class LoginInput(_WireModel):
    phone_number: str = Field(alias="PhoneNumber")
    sms_code: str = Field(alias="SMSCode")


class RegisterInput(_WireModel):
    phone_number: str = Field(alias="PhoneNumber")
    sms_code: str = Field(alias="SMSCode")
    name: str = Field(alias="Name")
    email: str = Field(default="", alias="Email")
    date_of_birth: str = Field(default="", alias="DateOfBirth")
    locale: str = Field(default=DEFAULT_LOCALE, alias="Locale")
    store_id: str = Field(default="", alias="StoreId")
    accepted_legal_documents: ListWrapper[str] = Field(alias="AcceptedLegalDocuments")


class OffersInput(_WireModel):
    cache_refresh: str = Field(
        default=OFFERS_CACHE_REFRESH_STAMP,
        alias="J4yCacheRefresh",
    )


# Operation outputs.


class SmsCodeData(_WireModel):
    is_sms_sent: bool = Field(default=False, alias="isSMSSent")
    is_blocked: bool = Field(default=False, alias="isBlocked")
    blocked_in_minutes: int = Field(default=0, alias="blockedInMinutes")
    error_message: str = Field(default="", alias="errorMessage")


class NextStepData(_WireModel):
    next_step: str = Field(alias="nextStep")


class LoginData(_WireModel):
    card_number: str = Field(alias="cardNumber")
    external_customer_id: str = Field(alias="externalCustomerId")
    auth_token: str = Field(alias="authToken")


class EmptyData(_WireModel):
    pass


class OfferElement(_WireModel):
    offer_type: str = Field(default="", alias="OfferType")
    offer_id_ext: str = Field(alias="OfferIdExt")
    name: str = Field(default="", alias="Name")
    promotion_time: str = Field(default="", alias="PromotionTime")
    description: str = Field(default="", alias="Description")
    promo_price: str = Field(default="", alias="PromoPrice")
    regular_price: str = Field(default="", alias="RegularPrice")
    discount: int = Field(default=0, alias="Discount")
    tag_top_line: str = Field(default="", alias="TagTopLine")
    tag_bottom_line: str = Field(default="", alias="TagBottomLine")
    promo_details: str = Field(default="", alias="PromoDetails")
    price_per_unit: str = Field(default="", alias="PricePerUnit")
    limits: str = Field(default="", alias="Limits")
    regular_price_per_unit: str = Field(default="", alias="RegularPricePerUnit")
    product_url: str = Field(default="", alias="ProductURL")
    thumb_url: str = Field(default="", alias="ThumbURL")
    image_url: str = Field(default="", alias="ImageURL")
    full_screen_image_url: str = Field(default="", alias="FullScreenImageURL")


class OffersData(_WireModel):
    j4y: ListWrapper[OfferElement] = Field(alias="J4y")


class ResponseEnvelope(_WireModel, Generic[T]):
    version_info: ResponseVersionInfo = Field(
        default_factory=ResponseVersionInfo,
        alias="versionInfo",
    )
    data: T
