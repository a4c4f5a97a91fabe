"""SightRead: graded piano sight-reading exercise generator."""

__version__ = "0.1.0"

from sightread.generator import generate_exercise  # noqa: E402
from sightread.sheet_models import GeneratedScore, Preset  # noqa: E402

__all__ = ["GeneratedScore", "Preset", "__version__", "generate_exercise"]
