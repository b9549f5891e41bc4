"""Temporal client factory.

Connects to the Temporal frontend configured in the environment. Without an
API key the client targets a local development server.
"""

import os

from temporalio.client import Client

from extraction.config import load_env_file


DEFAULT_LOCAL_ENDPOINT = "localhost:7233"


async def get_temporal_client() -> Client:
    """Create and return a Temporal client.

    Reads configuration from environment variables:
    - TEMPORAL_ENDPOINT: Frontend address (default: localhost:7233)
    - TEMPORAL_NAMESPACE: Namespace (default: "default")
    - TEMPORAL_API_KEY: Temporal Cloud API key; enables TLS when set

    Returns:
        Connected Temporal client
    """
    load_env_file()

    endpoint = os.getenv("TEMPORAL_ENDPOINT", DEFAULT_LOCAL_ENDPOINT)
    namespace = os.getenv("TEMPORAL_NAMESPACE", "default")
    api_key = os.getenv("TEMPORAL_API_KEY") or None

    return await Client.connect(
        endpoint,
        namespace=namespace,
        api_key=api_key,
        tls=api_key is not None,
    )
