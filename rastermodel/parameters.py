"""Package-wide defaults."""

# Execution providers tried in order when creating a session.
DEFAULT_PROVIDERS = ("CPUExecutionProvider",)

# Default GeoTIFF write options used by raster outputs.
GEOTIF_OPTIONS = {
    "driver": "GTiff",
    "dtype": "float32",
    "compress": "LZW",
    "nodata": -9999,
}

# Number format for tensor statistics in debug reports.
REPORT_FLOAT_FORMAT = "{:.6g}"
