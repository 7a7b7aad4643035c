"""dicom-raster: decode uncompressed DICOM pixel data and resolve its display window."""
