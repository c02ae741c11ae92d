from gamsurface.analysis.model import FittedSurface
from gamsurface.analysis.predict import predict_rows

__all__ = ["FittedSurface", "predict_rows"]
