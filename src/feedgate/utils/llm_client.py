import instructor
import openai
from pydantic import BaseModel
from typing import TypeVar, Type, Optional
import logging
import time
from ..config import settings
from .secrets import get_openai_key

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger(__name__)


class LLMClient:
    """Wrapper around OpenAI + Instructor for structured extraction."""

    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None, api_key: Optional[str] = None) -> None:
        """
        Initialize LLM client.

        Args:
            model: Explicit model name (overrides settings.llm_model)
            temperature: Sampling temperature (None = settings.llm_temperature)
            api_key: Explicit key, otherwise loaded from secrets
        """
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        key = api_key or get_openai_key()
        self.client = instructor.from_openai(
            openai.AsyncOpenAI(api_key=key),
            mode=instructor.Mode.TOOLS
        )
        logger.info(f"Initialized OpenAI client: model={self.model}")

    async def extract(
        self,
        prompt: str,
        response_model: Type[T],
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None
    ) -> T:
        """
        Extract structured data from text using the LLM.

        Args:
            prompt: User prompt text
            response_model: Pydantic model to extract
            system_prompt: Optional system instructions
            temperature: Sampling temperature (overrides default)

        Returns:
            Instance of response_model with extracted data

        Raises:
            Exception: If extraction fails
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        request_ts = time.time()
        try:
            logger.info(f"LLM_REQUEST model={self.model} response_model={response_model.__name__}")
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_model=response_model,
                temperature=temperature if temperature is not None else self.temperature,
            )
            duration_ms = int((time.time() - request_ts) * 1000)
            logger.info(f"LLM_RESPONSE model={self.model} status=success duration_ms={duration_ms}")
            return resp
        except Exception as e:
            duration_ms = int((time.time() - request_ts) * 1000)
            logger.error(f"LLM_RESPONSE model={self.model} status=error duration_ms={duration_ms} error={str(e)[:100]}")
            raise
