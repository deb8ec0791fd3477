from .search_movies import SearchMoviesUseCase
from .trending_movies import TrendingMoviesUseCase

__all__ = ["SearchMoviesUseCase", "TrendingMoviesUseCase"]
