"""docupsert command line interface."""
