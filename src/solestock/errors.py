"""Gateway hata sınıfları ve sonuç tipi.

Gateway'ler bu hataları içeride raise eder, public sınırda ise
OperationResult.fail(...) olarak döndürür. Sunum katmanı kullanıcıya ne
gösterileceğine kendisi karar verir.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class GatewayError(Exception):
    """Tüm gateway hatalarının temel sınıfı."""

    code = "gateway_error"


class Unauthenticated(GatewayError):
    """Yazma işlemi için aktif oturum yok."""

    code = "unauthenticated"

    def __init__(self, message: str = "Aktif oturum yok, lütfen giriş yapın"):
        super().__init__(message)


class NotFound(GatewayError):
    """Referans verilen kayıt bulunamadı."""

    code = "not_found"


class WriteFailed(GatewayError):
    """Veri deposu bir yazma işlemini reddetti."""

    code = "write_failed"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ValidationFailed(GatewayError):
    """Yerel ön kontrol hatası (ör. büyük ya da resim olmayan dosya)."""

    code = "validation_failed"


class UpstreamUnavailable(GatewayError):
    """Harici servis (AI) yapılandırılmamış ya da çağrı başarısız."""

    code = "upstream_unavailable"


@dataclass
class OperationResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[GatewayError] = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: Optional[T] = None, warnings: Optional[list[str]] = None) -> "OperationResult[T]":
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def fail(cls, error: GatewayError) -> "OperationResult[T]":
        return cls(success=False, error=error)

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error else ""
