from safespeak.moderation.api.content import router

__all__ = ["router"]
