"""Secret references for API and bot tokens.

A token in the config file (or environment) may be given literally or as a
reference into a cloud secret store:

  - "aws-secret://name"           -> AWS Secrets Manager, whole secret string
  - "aws-secret://name#json_key"  -> AWS Secrets Manager, one key of a JSON secret
  - "gcp-secret://name"           -> GCP Secret Manager, latest version
  - "gcp-secret://projects/P/secrets/N/versions/V"
"""

from __future__ import annotations

import json
import logging
import os

from scripts.zone_inventory.errors import ConfigError

logger = logging.getLogger("zone_inventory.secrets")

_AWS_PREFIX = "aws-secret://"
_GCP_PREFIX = "gcp-secret://"


def is_secret_reference(value: str) -> bool:
    return value.startswith((_AWS_PREFIX, _GCP_PREFIX))


def resolve_secret(value: str) -> str:
    """Return the plaintext for a secret reference, or ``value`` unchanged."""
    if value.startswith(_AWS_PREFIX):
        return _resolve_aws_secret(value[len(_AWS_PREFIX):])
    if value.startswith(_GCP_PREFIX):
        return _resolve_gcp_secret(value[len(_GCP_PREFIX):])
    return value


def _resolve_aws_secret(ref: str) -> str:
    import boto3
    from botocore.exceptions import BotoCoreError, ClientError

    secret_name, _, json_key = ref.partition("#")
    region = os.environ.get("AWS_REGION", "us-east-1")
    client = boto3.client("secretsmanager", region_name=region)

    logger.debug("Resolving AWS secret %s", secret_name)
    try:
        secret_string = client.get_secret_value(SecretId=secret_name)["SecretString"]
    except (BotoCoreError, ClientError) as exc:
        raise ConfigError(f"cannot read AWS secret '{secret_name}': {exc}") from exc
    if not json_key:
        return secret_string
    try:
        return str(json.loads(secret_string)[json_key])
    except (ValueError, KeyError, TypeError) as exc:
        raise ConfigError(f"secret '{secret_name}' has no JSON key '{json_key}'") from exc


def _resolve_gcp_secret(ref: str) -> str:
    from google.api_core.exceptions import GoogleAPIError
    from google.auth.exceptions import GoogleAuthError
    from google.cloud import secretmanager

    if ref.startswith("projects/"):
        name = ref
    else:
        project = os.environ.get("GCP_PROJECT_ID") or os.environ.get("GOOGLE_CLOUD_PROJECT")
        if not project:
            raise ConfigError(
                f"cannot resolve gcp-secret://{ref}: set GCP_PROJECT_ID or use a full resource name"
            )
        name = f"projects/{project}/secrets/{ref}/versions/latest"

    logger.debug("Resolving GCP secret %s", name)
    try:
        client = secretmanager.SecretManagerServiceClient()
        response = client.access_secret_version(request={"name": name})
    except (GoogleAPIError, GoogleAuthError) as exc:
        raise ConfigError(f"cannot read GCP secret '{name}': {exc}") from exc
    return response.payload.data.decode("UTF-8")
