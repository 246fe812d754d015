"""REST boundary between the orchestrator and the crawler backend."""
