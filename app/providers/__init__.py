"""Provider adapters package - external API clients."""
from .tmdb import TMDbProvider
from .youtube import YouTubeSearchProvider

__all__ = ["TMDbProvider", "YouTubeSearchProvider"]
