"""Application services: scope resolution, bulk reset, user provisioning, OAuth, summaries."""
