"""Shared Bedrock runtime client and JSON invocation helper."""

import json
import logging
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings
from ..errors import UpstreamError

logger = logging.getLogger(__name__)


def create_runtime_client(settings: Settings):
    """Create the process-wide Bedrock runtime client.

    Retries are disabled so every model call is a single attempt bounded by
    the configured connect/read timeouts. Explicit credentials are optional;
    without them boto3 falls back to its default provider chain.
    """
    config = Config(
        region_name=settings.aws_region,
        connect_timeout=settings.bedrock_connect_timeout,
        read_timeout=settings.bedrock_read_timeout,
        retries={"total_max_attempts": 1, "mode": "standard"},
    )
    return boto3.client(
        "bedrock-runtime",
        aws_access_key_id=settings.aws_access_key,
        aws_secret_access_key=settings.aws_secret_key,
        config=config,
    )


def invoke_json(runtime: Any, model_id: str, body: dict) -> dict:
    """Invoke a Bedrock model with a JSON body and return the parsed response.

    Raises:
        UpstreamError: If the call fails or the response is not a JSON object
    """
    t0 = time.time()
    try:
        response = runtime.invoke_model(
            body=json.dumps(body),
            modelId=model_id,
            accept="application/json",
            contentType="application/json",
        )
        payload = json.loads(response["body"].read())
    except (BotoCoreError, ClientError) as e:
        raise UpstreamError(f"Bedrock call to {model_id} failed: {e}") from e
    except (KeyError, ValueError) as e:
        raise UpstreamError(f"Malformed response from {model_id}: {e}") from e

    if not isinstance(payload, dict):
        raise UpstreamError(f"Unexpected response type from {model_id}: {type(payload).__name__}")

    logger.debug("Bedrock %s answered in %.3fs", model_id, time.time() - t0)
    return payload
