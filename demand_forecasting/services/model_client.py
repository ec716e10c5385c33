# demand_forecasting/services/model_client.py
import logging
from abc import ABC, abstractmethod

import openai

from demand_forecasting.config import config
from demand_forecasting.exceptions import ConfigError, DependencyError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a demand planning analyst for a small retail business. "
    "Answer with the requested JSON object only."
)


class ForecastModel(ABC):
    """Opaque text-in, text-out forecasting service."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        pass


class OpenAIForecastModel(ForecastModel):
    """Forecasting model served through the OpenAI chat completions API."""

    def __init__(self, client=None, model=None, max_tokens=None, temperature=None, timeout=None):
        """Initialize the model handle.

        Args:
            client: Pre-built openai.OpenAI client; built from configuration when None
            model: Model name
            max_tokens: Completion token limit
            temperature: Sampling temperature
            timeout: Request timeout in seconds
        """
        settings = config.model_config
        self.model = model or settings['model']
        self.max_tokens = max_tokens or settings['max_tokens']
        self.temperature = temperature if temperature is not None else settings['temperature']
        self.timeout = timeout or settings['timeout_seconds']

        if client is None and settings['api_key']:
            client = openai.OpenAI(api_key=settings['api_key'], timeout=self.timeout)
        self.client = client

    def complete(self, prompt: str) -> str:
        if self.client is None:
            raise ConfigError("Forecasting model API key is not configured (set OPENAI_API_KEY)")

        logger.info(f"Requesting forecast from model {self.model}")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except openai.OpenAIError as e:
            raise DependencyError(f"Forecasting model request failed: {str(e)}")

        if not response.choices:
            return ''
        return (response.choices[0].message.content or '').strip()
