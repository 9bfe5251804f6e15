from .pending_settlement import PendingSettlement

__all__ = ["PendingSettlement"]
