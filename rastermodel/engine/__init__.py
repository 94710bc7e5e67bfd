"""Engine package exports."""

from rastermodel.engine.base import Graph, SessionBase, TensorSpec
from rastermodel.engine.ort import SessionORT, create_session, load_graph
from rastermodel.engine.providers import get_numpy_info, get_onnxruntime_info, get_rasterio_info


__all__ = [
    "Graph",
    "SessionBase",
    "SessionORT",
    "TensorSpec",
    "create_session",
    "get_numpy_info",
    "get_onnxruntime_info",
    "get_rasterio_info",
    "load_graph",
]
