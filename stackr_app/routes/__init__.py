from .search_api import search_api_bp

__all__ = ['search_api_bp']
