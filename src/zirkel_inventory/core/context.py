"""
Per-process pipeline context.

Built once at start-up and passed explicitly to every operation that needs
an AI client or a remote store, instead of module-level client singletons.
"""

from dataclasses import dataclass, field
from typing import Optional

from anthropic import Anthropic

from zirkel_inventory.core import config
from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.integrations.ports import DeckStore, TabularStore


@dataclass
class PipelineContext:
    """Clients and settings shared by one process."""
    anthropic: Optional[Anthropic] = None
    inventory: Optional[TabularStore] = None
    decks: Optional[DeckStore] = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    extraction_model: str = config.EXTRACTION_MODEL_ID
    extraction_max_tokens: int = config.EXTRACTION_MAX_TOKENS
    selection_model: str = config.SELECTION_MODEL_ID
    selection_max_tokens: int = config.SELECTION_MAX_TOKENS
    thumbnail_max_edge: int = config.THUMBNAIL_MAX_EDGE

    @classmethod
    def from_env(
        cls,
        need_ai: bool = True,
        need_sheets: bool = False,
        need_slides: bool = False,
    ) -> "PipelineContext":
        """
        Create a context from environment configuration.

        Only the clients for the requested features are constructed, and their
        configuration is validated first.

        Raises:
            MissingConfigurationError: If a required value is absent
        """
        from zirkel_inventory.integrations.google.sheets import SheetsClient
        from zirkel_inventory.integrations.google.slides import SlidesClient

        require = []
        if need_ai:
            require.append("extraction")
        if need_sheets:
            require.append("sheets")
        if need_slides:
            require.append("slides")
        config.validate_config(require)

        return cls(
            anthropic=Anthropic(api_key=config.ANTHROPIC_API_KEY) if need_ai else None,
            inventory=SheetsClient() if need_sheets else None,
            decks=SlidesClient() if need_slides else None,
        )
