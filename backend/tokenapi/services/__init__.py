"""Application services (token lifecycle orchestration and its collaborators)."""
