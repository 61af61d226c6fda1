"""Third-party data provider clients."""
