"""Data transfer objects passed between layers (no Firestore types)."""
