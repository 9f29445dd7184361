"""
mem0 hosted memory provider.
Talks to the mem0 REST API directly over httpx.
"""

import httpx
import logging
import time
from typing import Any, Dict, List

from .base import MemoryProvider

logger = logging.getLogger(__name__)


class Mem0MemoryProvider(MemoryProvider):
    """Provider for the mem0 platform API (v1 memories endpoints)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.mem0.ai",
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/json",
        }

    async def add(self, user_id: str, text: str, metadata: Dict[str, Any]) -> None:
        url = f"{self.base_url}/v1/memories/"
        payload = {
            "messages": [{"role": "user", "content": text}],
            "user_id": user_id,
            "metadata": metadata,
        }

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
        except Exception as e:
            logger.error(
                f"mem0 add failed: {str(e)}",
                exc_info=True,
                extra={"extra_fields": {"user_id": user_id, "error": str(e)}}
            )
            raise

        logger.debug(
            "mem0 add completed",
            extra={"extra_fields": {
                "user_id": user_id,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            }}
        )

    async def search(self, query: str, user_id: str, limit: int) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/v1/memories/search/"
        payload = {"query": query, "user_id": user_id, "limit": limit}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
                data = resp.json()
        except Exception as e:
            logger.error(
                f"mem0 search failed: {str(e)}",
                exc_info=True,
                extra={"extra_fields": {"user_id": user_id, "error": str(e)}}
            )
            raise

        # Older API versions return a bare list, newer ones wrap it in "results"
        results = data.get("results", []) if isinstance(data, dict) else data
        return list(results or [])[:limit]
