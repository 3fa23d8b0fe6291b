"""
Database Module

This module provides database configuration and models for the CartPod backend.
"""

from cartpod.database.base import Base, ModelBase, metadata
from cartpod.database.init_db import Database

__all__ = ['Base', 'ModelBase', 'metadata', 'Database']
