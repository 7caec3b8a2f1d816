"""Amazon Bedrock client for Anthropic models."""

import json
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from evexia.config import Settings, get_settings
from evexia.core.exceptions import AIGenerationError
from evexia.utils.logging import get_logger

logger = get_logger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"


class BedrockClient:
    """Thin wrapper over ``bedrock-runtime`` ``invoke_model``.

    Calls are blocking; async callers run them in a worker thread.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        """Initialize Bedrock client."""
        self.settings = settings or get_settings()
        if client is None:
            retry_config = Config(
                region_name=self.settings.aws_region,
                retries={"max_attempts": 3, "mode": "adaptive"},
            )
            client = boto3.client(
                "bedrock-runtime",
                config=retry_config,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
            )
        self.bedrock_runtime = client

    def complete(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Send one user message and return the model's text.

        Raises:
            AIGenerationError: on any provider error or an empty response
        """
        model_id = self.settings.ai_model_id
        if not model_id:
            raise AIGenerationError("No AI model configured")

        body: Dict[str, Any] = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": max_tokens or self.settings.ai_max_tokens,
            "temperature": (
                self.settings.ai_temperature if temperature is None else temperature
            ),
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = self.bedrock_runtime.invoke_model(
                modelId=model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )
            payload = json.loads(response["body"].read())
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("bedrock_invoke_failed", model_id=model_id, error_code=error_code)
            raise AIGenerationError(f"Bedrock error: {error_code}") from e
        except (BotoCoreError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("bedrock_invoke_failed", model_id=model_id, error=str(e))
            raise AIGenerationError(str(e)) from e

        text = response_text(payload)
        if not text.strip():
            raise AIGenerationError("Empty response from model")

        usage = payload.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        logger.info(
            "bedrock_completion",
            model_id=model_id,
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
        )
        return text


def response_text(payload: Any) -> str:
    """Join the text blocks of a messages API response.

    Raises:
        AIGenerationError: when the body is not a messages API response
    """
    content = payload.get("content") if isinstance(payload, dict) else None
    if not isinstance(content, list):
        logger.error("bedrock_unexpected_response", body_type=type(payload).__name__)
        raise AIGenerationError("Unexpected response shape from model")

    return "".join(
        block["text"]
        for block in content
        if isinstance(block, dict)
        and block.get("type") == "text"
        and isinstance(block.get("text"), str)
    )
