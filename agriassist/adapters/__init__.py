"""Backend adapters for the realtime client."""

from agriassist.adapters.api_client import AgriAssistApiClient, ApiResult

__all__ = ["AgriAssistApiClient", "ApiResult"]
