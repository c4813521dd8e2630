"""
WalletWise: personal finance tracking API
Transactions, dashboard statistics, goals, CSV export and an AI assistant
on top of Supabase and a hosted chat-completion model.
"""

from .app import create_app

__all__ = ["create_app"]

# Version
__version__ = "1.0.0"
