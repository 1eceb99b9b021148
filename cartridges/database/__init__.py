"""
Relational persistence for cartridges and messages
"""

from .models import Base, CartridgeRecord, MessageRecord

__all__ = ["Base", "CartridgeRecord", "MessageRecord"]
