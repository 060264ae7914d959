"""Base class for the export and import mesh translators.

A translator is a one-shot transform: it validates its input, runs, and
either returns a freshly built output or fails as a whole. Structural
problems are raised internally as ``TranslationError`` and converted to a
``None`` result at the top level, so callers never see a partially
populated mesh.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel

from .contracts import TranslationMeta

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")
ConfigT = TypeVar("ConfigT", bound=BaseModel)

logger = logging.getLogger(__name__)


class TranslationError(ValueError):
    """Raised when a mesh cannot be translated (corrupt or incomplete input)."""


class BaseTranslator(ABC, Generic[InputT, OutputT, ConfigT]):
    """Abstract base for mesh translators.

    Subclasses must:
    1. Set class variables: name, config_type
    2. Implement run() and validate_inputs()

    Example:
        class ImportTranslator(BaseTranslator[CompressedMesh, GeneralMesh, ImportConfig]):
            name = "import_mesh"
            config_type = ImportConfig

            def run(self, inputs: CompressedMesh) -> GeneralMesh: ...
            def validate_inputs(self, inputs: CompressedMesh) -> bool: ...
    """

    name: ClassVar[str] = ""
    config_type: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT | None = None):
        self.config = config if config is not None else self.config_type()
        self.meta: TranslationMeta | None = None

    @abstractmethod
    def run(self, inputs: InputT) -> OutputT:
        """Translate the input. Raises TranslationError on corrupt data."""
        ...

    @abstractmethod
    def validate_inputs(self, inputs: InputT) -> bool:
        """Check that the input carries everything the translation requires."""
        ...

    def execute(self, inputs: InputT) -> OutputT | None:
        """Run with logging, timing, and validation.

        Returns None when validation or translation fails.
        """
        name = self.name or self.__class__.__name__
        logger.info(f"[{name}] Validating inputs...")

        if not self.validate_inputs(inputs):
            logger.error(f"[{name}] Input validation failed")
            return None

        logger.info(f"[{name}] Starting...")
        t0 = time.time()
        try:
            result = self.run(inputs)
        except TranslationError as e:
            logger.error(f"[{name}] Translation aborted: {e}")
            return None
        elapsed = time.time() - t0
        self.meta = TranslationMeta(
            translator_name=name,
            elapsed_seconds=elapsed,
            params=self.config.model_dump(),
        )
        logger.info(f"[{name}] Done in {elapsed:.3f}s")
        return result

    @classmethod
    def translate(cls, inputs: InputT, config: ConfigT | None = None) -> OutputT | None:
        """Translate ``inputs`` with a fresh translator instance."""
        return cls(config).execute(inputs)

    @classmethod
    def get_config_schema(cls) -> dict:
        """Return JSON schema for config."""
        return cls.config_type.model_json_schema()
