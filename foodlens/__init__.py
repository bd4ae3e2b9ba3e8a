"""
Scan-to-insight nutrition pipeline.

This package turns a product barcode or a label photograph into a
personalized nutrition assessment for a consumer's health profile.

Structure:
- domain/: Value objects, models, prompts, parsing and ports
- application/: Use cases orchestrating domain services
- infrastructure/: External concerns (OpenFoodFacts, Gemini, barcode
  decoding, in-memory persistence, config, logging)
- pipeline.py: Composition root wiring everything together
"""

__version__ = "1.0.0"
