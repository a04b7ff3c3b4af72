"""Post generation pipeline."""

from postify.services.generator.service import GenerationOutcome, PostGenerator

__all__ = ["GenerationOutcome", "PostGenerator"]
