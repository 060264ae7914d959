"""usddraco core: translator base, shared contracts, configuration, logging."""

from .translator_base import BaseTranslator, TranslationError
from .contracts import AttributeSummary, TranslationMeta
from .config import CodecConfig, UsdLayerConfig, load_codec_config, load_section_config
from .logging import setup_logging

__all__ = [
    "BaseTranslator",
    "TranslationError",
    "TranslationMeta",
    "AttributeSummary",
    "CodecConfig",
    "UsdLayerConfig",
    "load_codec_config",
    "load_section_config",
    "setup_logging",
]
