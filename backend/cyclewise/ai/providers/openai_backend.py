"""
OpenAI forecast backend.
"""
import json
import logging

from openai import AsyncOpenAI, OpenAIError

from cyclewise.ai.base import (
    ForecastBackend,
    ForecastContext,
    ForecastGenerationError,
    ForecastResult,
    MetricSnapshot,
)
from cyclewise.config import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a compassionate women's health AI advisor specializing in interpreting "
    "biometric data and providing actionable wellness guidance."
)


def _fmt(value) -> str:
    return str(value) if value else "N/A"


def build_metrics_text(metrics: list[MetricSnapshot]) -> str:
    return "\n".join(
        f"Day {idx}: Sleep {_fmt(m.sleep_score)}, HRV {_fmt(m.hrv)}ms, "
        f"Recovery {_fmt(m.recovery_score)}, Glucose {_fmt(m.avg_glucose)}mg/dL, "
        f"Steps {_fmt(m.steps)}"
        for idx, m in enumerate(metrics, start=1)
    )


def build_forecast_prompt(metrics: list[MetricSnapshot], context: ForecastContext) -> str:
    cycle_line = ""
    if context.cycle_phase:
        cycle_line = f"\nCurrent menstrual cycle phase: {context.cycle_phase}\n"

    return f"""You are a women's health AI advisor. Based on the following health metrics from the past week, provide a personalized wellness forecast and recommendations.

Health Metrics:
{build_metrics_text(metrics)}
{cycle_line}
Please provide:
1. A brief forecast about the user's wellness trajectory (2-3 sentences)
2. Key insights about patterns in the data
3. 3-5 actionable recommendations for improving health

Respond in JSON format with this structure:
{{
  "forecast": "string",
  "insights": {{
    "sleep": "string",
    "recovery": "string",
    "metabolism": "string"
  }},
  "recommendations": ["string", "string", "string"]
}}"""


class OpenAIForecastBackend(ForecastBackend):
    """Chat-completion forecast with a JSON response format"""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None):
        self.model_name = settings.openai_model
        self.max_tokens = settings.openai_max_tokens
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.forecast_timeout_seconds,
            max_retries=0,
        )

    @property
    def name(self) -> str:
        return "openai"

    async def generate(
        self, metrics: list[MetricSnapshot], context: ForecastContext
    ) -> ForecastResult:
        prompt = build_forecast_prompt(metrics, context)
        logger.info(
            "Requesting OpenAI forecast: model=%s days=%d", self.model_name, len(metrics),
            extra={"user_id": context.user_id},
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                max_completion_tokens=self.max_tokens,
            )
            content = response.choices[0].message.content or "{}"
            payload = json.loads(content)
        except OpenAIError as e:
            logger.error("OpenAI forecast request failed: %s", e)
            raise ForecastGenerationError("Failed to generate wellness forecast") from e
        except json.JSONDecodeError as e:
            logger.error("OpenAI forecast response was not valid JSON: %s", e)
            raise ForecastGenerationError("Forecast response was not valid JSON") from e

        if not isinstance(payload, dict):
            raise ForecastGenerationError("Forecast response was not a JSON object")

        return ForecastResult.from_payload(payload)

    async def close(self) -> None:
        await self.client.close()
