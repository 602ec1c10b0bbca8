"""Session-level operations: DOM extraction, screenshots, retention, OCR and key handling."""
