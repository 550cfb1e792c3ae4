from .algod import AlgodAppReader
from .lookup import get_creator_apps

__all__ = ["AlgodAppReader", "get_creator_apps"]
