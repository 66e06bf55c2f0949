"""
Clients for external collaborators (AI text generation).
"""
from .gemini import GeminiClient, get_ai_client, parse_anomalies

__all__ = ["GeminiClient", "get_ai_client", "parse_anomalies"]
