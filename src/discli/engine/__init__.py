"""Query-time engine: resolve dotted paths and build request descriptors."""
