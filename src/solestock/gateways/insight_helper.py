"""InsightHelper - satış geçmişinden Bedrock Nova ile kısa analiz üretir."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from solestock.models.entities import SaleWithDetails

logger = logging.getLogger(__name__)

MAX_SALES = 30
NOT_CONFIGURED_MESSAGE = "AI analizi yapılandırılmamış (INSIGHT_MODEL_ID / AWS kimlik bilgileri)."
CALL_FAILED_MESSAGE = "AI servisine bağlanılamadı. Model erişimini ve kimlik bilgilerini kontrol edin."
EMPTY_RESPONSE_MESSAGE = "Şu anda analiz üretilemedi."

PROMPT_TEMPLATE = """Kıdemli bir e-ticaret finans analisti gibi davran.
Bir sneaker mağazasının aşağıdaki satış verilerini (JSON) analiz et.

Veri: {data}

Lütfen şunları ver:
1. Hangi platformun en çok net kâr getirdiğine dair kısa bir analiz.
2. "Yıldız" ürün hangisi (en yüksek marj).
3. Gelecek ay kârı artırmak için kısa bir stratejik öneri (en fazla 2 satır).

Cevabı basit Markdown ile yaz. Net ol ve satıcıyı motive et.
"""


def summarize_sales(sales: list[SaleWithDetails], limit: int = MAX_SALES) -> list[dict]:
    """Prompt'a girecek hafif özet: en yeni `limit` satış."""
    recent = sorted(sales, key=lambda s: s.sale.date_sale, reverse=True)[:limit]
    return [
        {
            "product": s.product_name,
            "platform": s.platform_name,
            "received": s.sale.value_received,
            "profit": s.sale.profit_final,
            "date": s.sale.date_sale.split("T")[0],
        }
        for s in recent
    ]


def build_prompt(sales: list[SaleWithDetails]) -> str:
    return PROMPT_TEMPLATE.format(data=json.dumps(summarize_sales(sales), ensure_ascii=False))


class InsightHelper:
    def __init__(
        self,
        model_id: Optional[str],
        region_name: str = "us-west-2",
        bedrock_client: Optional[Any] = None,
        max_tokens: int = 800,
        temperature: float = 0.5,
    ):
        self.model_id = model_id
        self.region_name = region_name
        self._bedrock = bedrock_client
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def bedrock_runtime(self) -> Any:
        if self._bedrock is None:
            self._bedrock = boto3.client("bedrock-runtime", region_name=self.region_name)
        return self._bedrock

    def summarize(self, sales: list[SaleWithDetails]) -> str:
        """Analiz metni döndürür; hiçbir durumda exception fırlatmaz."""
        if not self.model_id:
            return NOT_CONFIGURED_MESSAGE

        try:
            response = self.bedrock_runtime.invoke_model(
                modelId=self.model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(
                    {
                        "messages": [{"role": "user", "content": [{"text": build_prompt(sales)}]}],
                        "inferenceConfig": {
                            "max_new_tokens": self.max_tokens,
                            "temperature": self.temperature,
                        },
                    }
                ),
            )
            result = json.loads(response["body"].read())
        except NoCredentialsError:
            logger.warning("AI analizi atlandı: AWS kimlik bilgisi yok")
            return NOT_CONFIGURED_MESSAGE
        except (ClientError, BotoCoreError, ValueError, KeyError) as e:
            logger.error("Bedrock API hatası: %s", e)
            return CALL_FAILED_MESSAGE

        content = result.get("output", {}).get("message", {}).get("content") or [{}]
        text = content[0].get("text", "")
        return text or EMPTY_RESPONSE_MESSAGE
