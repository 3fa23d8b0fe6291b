"""
Directory

Cart pods, the food carts inside them, and reviews, with location search.
"""

from cartpod.directory.repository import DirectoryRepository
from cartpod.directory.router import cart_pod_router, food_cart_router

__all__ = ['DirectoryRepository', 'cart_pod_router', 'food_cart_router']
