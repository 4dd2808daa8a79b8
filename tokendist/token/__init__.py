"""In-process fungible token ledger used as the engine's transfer collaborator."""

from .ledger import TokenLedger

__all__ = ["TokenLedger"]
