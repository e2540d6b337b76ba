from .converter.pipeline import ConversionPipeline, convert
from .rules.config import ConversionOptions

__version__ = "0.1.0"

__all__ = ["ConversionOptions", "ConversionPipeline", "convert", "__version__"]
