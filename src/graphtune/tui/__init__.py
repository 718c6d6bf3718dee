"""Terminal UI for live profiling."""
