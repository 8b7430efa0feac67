from .enhance import ChatMessage, EnhanceRequest, EnhanceResponse

__all__ = ["ChatMessage", "EnhanceRequest", "EnhanceResponse"]
