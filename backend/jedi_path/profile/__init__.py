from .generator import (
    ProfileAttributes,
    ProfileResult,
    compose_fallback,
    generate_profile,
    pick_random,
    preview_profile,
)

__all__ = [
    "ProfileAttributes",
    "ProfileResult",
    "compose_fallback",
    "generate_profile",
    "pick_random",
    "preview_profile",
]
