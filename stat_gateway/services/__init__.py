"""Read façade, extraction and season aggregation services."""
