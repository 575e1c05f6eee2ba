"""Async client for the loyalty backend onboarding and offer endpoints."""

from __future__ import annotations

import json
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import TYPE_CHECKING, TypeVar
from urllib.parse import unquote

import httpx
from pydantic import BaseModel, ValidationError

from .csrf import extract_csrf_token
from .errors import (
    BackendTransportError,
    CsrfNotFoundError,
    MissingCookieError,
    SmsBlockedError,
    SmsSendFailedError,
    UnrecognizedStepError,
)
from .models import AccountRecord, NextStep, Offer, SessionCredentials
from .payloads import (
    EmptyData,
    ListWrapper,
    LoginData,
    LoginInput,
    NextStepData,
    OfferElement,
    OffersData,
    OffersInput,
    PhoneNumberInput,
    RegisterInput,
    RequestEnvelope,
    RequestVersionInfo,
    ResponseEnvelope,
    SmsCodeData,
)

if TYPE_CHECKING:
    from loyalbot.config.secrets import ApiConfig

logger = logging.getLogger(__name__)

SESSION_COOKIE_A = "nr1Users"
SESSION_COOKIE_B = "nr2Users"
CONTENT_TYPE = "application/json; charset=UTF-8"

_NEXT_STEP_VALUES: dict[str, NextStep] = {
    "Register": NextStep.NEW_ACCOUNT,
    "Login": NextStep.ACCOUNT_EXISTS,
}

DataT = TypeVar("DataT", bound=BaseModel)


def create_http_client(
    *,
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the shared transport; sessions travel in explicit cookie headers."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        transport=transport,
    )


class LoyaltyApiClient:
    """Issue onboarding and offer calls against the loyalty backend.

    The client keeps no per-conversation state and is shared by every chat.
    Each operation is attempted exactly once; transport, HTTP status and
    payload decoding failures all surface as `BackendTransportError`.
    """

    _config: ApiConfig
    _http: httpx.AsyncClient

    def __init__(self, *, config: ApiConfig, http_client: httpx.AsyncClient) -> None:
        """Bind backend configuration and the shared HTTP transport."""
        self._config = config
        self._http = http_client

    async def aclose(self) -> None:
        """Close the underlying HTTP transport."""
        await self._http.aclose()

    async def request_sms_code(self, phone_number: str) -> None:
        """Ask the backend to text a one-time code to `phone_number`."""
        response = await self._post(
            operation="request_sms_code",
            path=self._onboarding_path("ActionSendSMSCode"),
            api_version=self._config.sms_api_version,
            payload=PhoneNumberInput(phone_number=phone_number),
        )
        data = self._decode(response, SmsCodeData, operation="request_sms_code")
        if data.blocked_in_minutes > 0:
            raise SmsBlockedError(data.blocked_in_minutes)
        if data.is_blocked:
            raise SmsBlockedError(None)
        if not data.is_sms_sent:
            raise SmsSendFailedError(data.error_message)
        logger.info("SMS code requested", extra={"operation": "request_sms_code"})

    async def compute_next_step(self, phone_number: str) -> NextStep:
        """Return whether the phone number needs registration or can log in."""
        response = await self._post(
            operation="compute_next_step",
            path=self._onboarding_path("ActionGetNextStep"),
            api_version=self._config.next_step_version,
            payload=PhoneNumberInput(phone_number=phone_number),
        )
        data = self._decode(response, NextStepData, operation="compute_next_step")
        step = _NEXT_STEP_VALUES.get(data.next_step)
        if step is None:
            raise UnrecognizedStepError(data.next_step)
        return step

    async def login(
        self,
        *,
        title: str,
        phone_number: str,
        sms_code: str,
    ) -> AccountRecord:
        """Log in with an SMS code and capture the resulting session."""
        response = await self._post(
            operation="login",
            path=self._onboarding_path("ActionDoLogin"),
            api_version=self._config.login_api_version,
            payload=LoginInput(phone_number=phone_number, sms_code=sms_code),
        )
        credentials = _credentials_from_cookies(response)
        data = self._decode(response, LoginData, operation="login")
        logger.info("Backend login succeeded", extra={"operation": "login"})
        return AccountRecord(
            title=title,
            phone_number=phone_number,
            card_number=data.card_number,
            external_customer_id=data.external_customer_id,
            auth_token=data.auth_token,
            credentials=credentials,
        )

    async def register(
        self,
        *,
        phone_number: str,
        sms_code: str,
        display_name: str,
    ) -> None:
        """Create a new backend account; a separate login yields its session."""
        response = await self._post(
            operation="register",
            path=self._onboarding_path("ActionCreateAccount"),
            api_version=self._config.create_account_version,
            payload=RegisterInput(
                phone_number=phone_number,
                sms_code=sms_code,
                name=display_name,
                accepted_legal_documents=ListWrapper[str](
                    items=list(self._config.legal_ids),
                ),
            ),
        )
        _ = self._decode(response, EmptyData, operation="register")
        logger.info("Backend registration succeeded", extra={"operation": "register"})

    async def get_offers(self, credentials: SessionCredentials) -> list[Offer]:
        """Fetch the personal offers for an authenticated account."""
        response = await self._post(
            operation="get_offers",
            path=f"{self._config.brand_name}_Sync/ActionServerDataSync_2_J4y",
            api_version=self._config.promo_sync_api_version,
            payload=OffersInput(),
            credentials=credentials,
        )
        data = self._decode(response, OffersData, operation="get_offers")
        offers = [_offer_from_element(element) for element in data.j4y.items]
        return [offer for offer in offers if offer.name]

    def _onboarding_path(self, action: str) -> str:
        return f"{self._config.brand_name}_Onboarding/{action}"

    async def _post(
        self,
        *,
        operation: str,
        path: str,
        api_version: str,
        payload: BaseModel,
        credentials: SessionCredentials | None = None,
    ) -> httpx.Response:
        auth = credentials or SessionCredentials.anonymous(self._config.anonymous_csrf)
        envelope = RequestEnvelope(
            version_info=RequestVersionInfo(
                module_version=self._config.module_version,
                api_version=api_version,
            ),
            input_parameters=payload.model_dump(by_alias=True),
        )
        headers = {
            "content-type": CONTENT_TYPE,
            "x-csrftoken": auth.csrf_token,
            "cookie": (
                f"{SESSION_COOKIE_A}={auth.session_token_a}; "
                f"{SESSION_COOKIE_B}={auth.session_token_b};"
            ),
        }
        try:
            response = await self._http.post(
                f"{self._config.api_root}{path}",
                content=json.dumps(envelope.model_dump(by_alias=True)),
                headers=headers,
            )
            _ = response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BackendTransportError.for_operation(
                operation,
                details=f"{type(exc).__name__}: {exc}",
            ) from exc
        return response

    def _decode(
        self,
        response: httpx.Response,
        data_model: type[DataT],
        *,
        operation: str,
    ) -> DataT:
        try:
            envelope = ResponseEnvelope[data_model].model_validate_json(
                response.content,
            )
        except ValidationError as exc:
            raise BackendTransportError.for_operation(
                operation,
                details=f"unexpected response payload ({exc.error_count()} errors)",
            ) from exc
        version_info = envelope.version_info
        if version_info.has_module_version_changed or version_info.has_api_version_changed:
            logger.warning(
                "Backend reports a newer module or API version",
                extra={
                    "operation": operation,
                    "module_version_changed": version_info.has_module_version_changed,
                    "api_version_changed": version_info.has_api_version_changed,
                },
            )
        return envelope.data


def _credentials_from_cookies(response: httpx.Response) -> SessionCredentials:
    """Build session credentials from the login response cookies."""
    cookies = _first_cookie_values(
        response.headers.get_list("set-cookie"),
        names=(SESSION_COOKIE_A, SESSION_COOKIE_B),
    )
    for name in (SESSION_COOKIE_A, SESSION_COOKIE_B):
        if name not in cookies:
            raise MissingCookieError(name)

    session_token_b = cookies[SESSION_COOKIE_B]
    csrf_token = extract_csrf_token(unquote(session_token_b))
    if csrf_token is None:
        raise CsrfNotFoundError
    return SessionCredentials(
        session_token_a=cookies[SESSION_COOKIE_A],
        session_token_b=session_token_b,
        csrf_token=csrf_token,
    )


def _first_cookie_values(
    set_cookie_headers: list[str],
    *,
    names: tuple[str, ...],
) -> dict[str, str]:
    """Return the first value set for each wanted cookie name."""
    found: dict[str, str] = {}
    for header in set_cookie_headers:
        name, separator, value = header.split(";", 1)[0].partition("=")
        name = name.strip()
        if separator and name in names and name not in found:
            found[name] = value.strip()
    return found


def _offer_from_element(element: OfferElement) -> Offer:
    images = (
        element.full_screen_image_url,
        element.image_url,
        element.thumb_url,
    )
    return Offer(
        offer_id=element.offer_id_ext,
        name=element.name,
        details=(
            f"{element.description};{element.promo_details}\n"
            f"{element.tag_top_line};{element.tag_bottom_line}"
        ),
        limit=element.limits,
        image=next((url for url in images if url), None),
        human_time=element.promotion_time,
        regular_price=element.regular_price,
        regular_price_unit=element.regular_price_per_unit,
        offer_price=element.promo_price,
        offer_price_unit=element.price_per_unit,
        discount_percent=element.discount,
    )
