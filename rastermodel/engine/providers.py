"""Runtime dependency diagnostics for the doctor command."""

import importlib.metadata as md


def _distribution_version(dist_name: str) -> str | None:
    """Return an installed distribution version, or None when missing."""
    try:
        return md.version(dist_name)
    except md.PackageNotFoundError:
        return None


def get_onnxruntime_info() -> dict[str, object]:
    """Return ORT installation and execution provider diagnostics."""
    version = _distribution_version("onnxruntime")
    if version is None:
        return {"installed": False, "version": None, "available_providers": []}
    import onnxruntime as ort

    return {
        "installed": True,
        "version": version,
        "available_providers": list(ort.get_available_providers()),
    }


def get_rasterio_info() -> dict[str, object]:
    """Return rasterio installation diagnostics."""
    version = _distribution_version("rasterio")
    return {"installed": version is not None, "version": version}


def get_numpy_info() -> dict[str, object]:
    """Return numpy installation diagnostics."""
    version = _distribution_version("numpy")
    return {"installed": version is not None, "version": version}
