"""SessionGateway - Cognito user pool üzerinden kimlik doğrulama.

USER_PASSWORD_AUTH akışı kullanılır. App client'ın secret'ı varsa her
istekle SECRET_HASH gönderilir. Hatalar raise edilmez, okunabilir mesaj
taşıyan AuthResult olarak döner; tekrar deneme yapılmaz.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from solestock.gateways.base import describe_error
from solestock.models.entities import AuthSession

logger = logging.getLogger(__name__)

# Cognito hata kodu -> kullanıcıya gösterilecek mesaj
ERROR_MESSAGES = {
    "NotAuthorizedException": "E-posta veya şifre hatalı.",
    "UserNotFoundException": "E-posta veya şifre hatalı.",
    "UserNotConfirmedException": "E-posta adresi henüz doğrulanmadı. Gelen kutunuzu kontrol edin.",
    "UsernameExistsException": "Bu e-posta ile kayıtlı bir kullanıcı zaten var.",
    "InvalidPasswordException": "Şifre yeterince güçlü değil (en az 8 karakter, harf ve rakam).",
    "InvalidParameterException": "Geçersiz e-posta ya da şifre.",
    "TooManyRequestsException": "Çok fazla deneme yapıldı, lütfen biraz bekleyin.",
    "LimitExceededException": "Çok fazla deneme yapıldı, lütfen biraz bekleyin.",
    "PasswordResetRequiredException": "Şifrenizi sıfırlamanız gerekiyor.",
}
NOT_CONFIGURED_MESSAGE = "Kimlik doğrulama yapılandırılmamış (COGNITO_APP_CLIENT_ID)."


class SessionEvent(str, Enum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    TOKEN_REFRESHED = "token_refreshed"


SessionListener = Callable[[SessionEvent, Optional[AuthSession]], None]


@dataclass
class AuthResult:
    success: bool
    session: Optional[AuthSession] = None
    user_id: Optional[str] = None
    message: str = ""


class SessionSubscription:
    """on_session_change'in döndürdüğü abonelik; unsubscribe() ile kapatılır."""

    def __init__(self, gateway: "SessionGateway", consumer: str, listener: SessionListener):
        self._gateway = gateway
        self.consumer = consumer
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._gateway._remove_subscription(self)


def secret_hash(username: str, client_id: str, client_secret: str) -> str:
    """Cognito SECRET_HASH: Base64(HMAC-SHA256(secret, username + client_id))."""
    digest = hmac.new(
        client_secret.encode("utf-8"),
        (username + client_id).encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


class SessionGateway:
    """Cognito tabanlı oturum yönetimi.

    Aktif oturum bu nesnede tutulur; veri gateway'lerine her çağrıda açıkça
    parametre olarak verilir.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: Optional[str] = None,
        region_name: str = "us-west-2",
        cognito_client: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.cognito = cognito_client or boto3.client("cognito-idp", region_name=region_name)
        self.clock = clock
        self._session: Optional[AuthSession] = None
        self._subscriptions: dict[str, SessionSubscription] = {}

    # ------------------------------------------------------------------ #
    # Abonelikler
    # ------------------------------------------------------------------ #

    def on_session_change(self, listener: SessionListener, consumer: str = "default") -> SessionSubscription:
        """Oturum değişikliklerine abone olur. Aynı consumer için önceki abonelik kapatılır."""
        previous = self._subscriptions.get(consumer)
        if previous is not None:
            previous.unsubscribe()
        subscription = SessionSubscription(self, consumer, listener)
        self._subscriptions[consumer] = subscription
        return subscription

    def _remove_subscription(self, subscription: SessionSubscription) -> None:
        if self._subscriptions.get(subscription.consumer) is subscription:
            del self._subscriptions[subscription.consumer]

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _emit(self, event: SessionEvent, session: Optional[AuthSession]) -> None:
        for subscription in list(self._subscriptions.values()):
            try:
                subscription.listener(event, session)
            except Exception:
                logger.exception("Oturum dinleyicisi hata verdi (%s)", subscription.consumer)

    # ------------------------------------------------------------------ #
    # Cognito yardımcıları
    # ------------------------------------------------------------------ #

    def _auth_parameters(self, username: str, **params: str) -> dict[str, str]:
        if self.client_secret:
            params["SECRET_HASH"] = secret_hash(username, self.client_id, self.client_secret)
        return params

    @staticmethod
    def _message_for(error: Exception) -> str:
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            if code in ERROR_MESSAGES:
                return ERROR_MESSAGES[code]
        return describe_error(error)

    def _session_from_auth(
        self, auth: dict, email: str, user_id: Optional[str] = None, refresh_token: Optional[str] = None
    ) -> AuthSession:
        access_token = auth["AccessToken"]
        if user_id is None:
            user = self.cognito.get_user(AccessToken=access_token)
            attributes = {a["Name"]: a["Value"] for a in user.get("UserAttributes", [])}
            user_id = attributes.get("sub", user.get("Username"))
            email = attributes.get("email", email)
        return AuthSession(
            user_id=user_id,
            email=email,
            access_token=access_token,
            expires_at=self.clock() + int(auth.get("ExpiresIn", 3600)),
            refresh_token=auth.get("RefreshToken", refresh_token),
            id_token=auth.get("IdToken"),
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def sign_up(self, email: str, password: str) -> AuthResult:
        """Yeni kullanıcı kaydı. Kullanıcı otomatik doğrulanmışsa oturum da açılır."""
        if not self.client_id:
            return AuthResult(success=False, message=NOT_CONFIGURED_MESSAGE)

        kwargs: dict[str, Any] = {
            "ClientId": self.client_id,
            "Username": email,
            "Password": password,
            "UserAttributes": [{"Name": "email", "Value": email}],
        }
        if self.client_secret:
            kwargs["SecretHash"] = secret_hash(email, self.client_id, self.client_secret)

        try:
            response = self.cognito.sign_up(**kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Kayıt başarısız (%s): %s", email, describe_error(e))
            return AuthResult(success=False, message=self._message_for(e))

        user_id = response.get("UserSub")
        logger.info("Kullanıcı kaydedildi: %s", email)
        if response.get("UserConfirmed"):
            return self.sign_in(email, password)
        return AuthResult(
            success=True,
            user_id=user_id,
            message="Kayıt oluşturuldu. Giriş yapmadan önce e-postanızı doğrulayın.",
        )

    def sign_in(self, email: str, password: str) -> AuthResult:
        if not self.client_id:
            return AuthResult(success=False, message=NOT_CONFIGURED_MESSAGE)

        try:
            response = self.cognito.initiate_auth(
                ClientId=self.client_id,
                AuthFlow="USER_PASSWORD_AUTH",
                AuthParameters=self._auth_parameters(email, USERNAME=email, PASSWORD=password),
            )
            if "AuthenticationResult" not in response:
                challenge = response.get("ChallengeName", "bilinmeyen")
                logger.warning("Giriş ek adım istiyor (%s): %s", email, challenge)
                return AuthResult(success=False, message=f"Giriş tamamlanamadı, ek doğrulama gerekli ({challenge}).")
            session = self._session_from_auth(response["AuthenticationResult"], email)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Giriş başarısız (%s): %s", email, describe_error(e))
            return AuthResult(success=False, message=self._message_for(e))

        self._session = session
        logger.info("Giriş yapıldı: %s", email)
        self._emit(SessionEvent.SIGNED_IN, session)
        return AuthResult(success=True, session=session, user_id=session.user_id)

    def sign_out(self) -> AuthResult:
        """Oturumu kapatır. Cognito tarafındaki global sign-out hatası yerel çıkışı engellemez."""
        session = self._session
        self._session = None
        if session is None:
            return AuthResult(success=True)

        message = ""
        try:
            self.cognito.global_sign_out(AccessToken=session.access_token)
        except (ClientError, BotoCoreError) as e:
            message = self._message_for(e)
            logger.warning("Cognito oturumu kapatılamadı: %s", describe_error(e))

        logger.info("Çıkış yapıldı: %s", session.email)
        self._emit(SessionEvent.SIGNED_OUT, None)
        return AuthResult(success=True, user_id=session.user_id, message=message)

    def _refresh(self, session: AuthSession) -> Optional[AuthSession]:
        if not session.refresh_token:
            return None
        try:
            response = self.cognito.initiate_auth(
                ClientId=self.client_id,
                AuthFlow="REFRESH_TOKEN_AUTH",
                AuthParameters=self._auth_parameters(session.user_id, REFRESH_TOKEN=session.refresh_token),
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning("Token yenilenemedi: %s", describe_error(e))
            return None
        auth = response.get("AuthenticationResult")
        if not auth:
            return None
        return self._session_from_auth(
            auth, session.email, user_id=session.user_id, refresh_token=session.refresh_token
        )

    def get_session(self) -> Optional[AuthSession]:
        """Aktif oturum; süresi dolmuşsa bir kez yenilemeyi dener."""
        session = self._session
        if session is None or not session.is_expired(self.clock()):
            return session

        refreshed = self._refresh(session)
        if refreshed is None:
            self._session = None
            self._emit(SessionEvent.SIGNED_OUT, None)
            return None

        self._session = refreshed
        self._emit(SessionEvent.TOKEN_REFRESHED, refreshed)
        return refreshed

    def get_user(self) -> Optional[dict[str, str]]:
        """Aktif kullanıcının Cognito öznitelikleri (sub, email ...)."""
        session = self.get_session()
        if session is None:
            return None
        try:
            user = self.cognito.get_user(AccessToken=session.access_token)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Kullanıcı bilgisi alınamadı: %s", describe_error(e))
            return None
        return {a["Name"]: a["Value"] for a in user.get("UserAttributes", [])}
