"""Firebase infrastructure: Firestore REST client, identity admin, repositories and services."""
