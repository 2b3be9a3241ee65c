"""YouTube Data API search adapter used for trailer fallback."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config.settings import ProviderConfig
from app.core.exceptions import ProviderUnavailableError
from app.models.schemas import VideoCandidate, VideoType

logger = logging.getLogger(__name__)

PROVIDER_NAME = "youtube"


def parse_search_item(raw: Dict[str, Any]) -> Optional[VideoCandidate]:
    video_id = (raw.get("id") or {}).get("videoId")
    if not video_id:
        return None
    snippet = raw.get("snippet") or {}
    return VideoCandidate(
        id=video_id,
        name=snippet.get("title") or "",
        site="YouTube",
        type=VideoType.OTHER,
        channel=snippet.get("channelTitle") or "",
        description=snippet.get("description") or "",
    )


class YouTubeSearchProvider:
    """Client for the YouTube Data API v3 search endpoint."""

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self._config.credential)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout_sec,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search(self, query: str, max_results: int = 10) -> List[VideoCandidate]:
        """Search high-definition videos matching `query`."""
        if not self.available:
            raise ProviderUnavailableError(PROVIDER_NAME, "API key not configured")

        params = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": max_results,
            "videoDefinition": "high",
            "key": self._config.credential,
        }

        client = self._get_client()
        try:
            resp = await client.get("/search", params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailableError(
                PROVIDER_NAME, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(PROVIDER_NAME, type(e).__name__) from e
        except ValueError as e:
            raise ProviderUnavailableError(PROVIDER_NAME, "invalid JSON for search") from e

        if not isinstance(data, dict):
            raise ProviderUnavailableError(PROVIDER_NAME, "unexpected payload for search")

        items = data.get("items") or []
        candidates = [c for c in (parse_search_item(raw) for raw in items) if c is not None]
        logger.debug(
            f"Search '{query}' returned {len(candidates)} videos",
            extra={"provider": PROVIDER_NAME},
        )
        return candidates
