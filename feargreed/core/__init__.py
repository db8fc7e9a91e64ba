"""Core of the Fear & Greed tracker: storage, ingestion and queries."""
