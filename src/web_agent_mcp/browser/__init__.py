"""Chrome driver creation, the Selenium page adapter and the session lifecycle."""
