from .pipeline import STAGES, ConversionPipeline, Stage, convert

__all__ = ["STAGES", "ConversionPipeline", "Stage", "convert"]
