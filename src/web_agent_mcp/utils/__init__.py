"""Small helpers shared by the tools: diagnostics, HTML cleaning and retries."""
