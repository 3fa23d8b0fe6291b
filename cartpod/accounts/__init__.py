"""
Accounts

HTTP endpoints for registration, login, user management and password resets.
"""

from cartpod.accounts.router import router

__all__ = ['router']
