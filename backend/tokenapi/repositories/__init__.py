"""Repository package exposing persistence-layer access for identity models."""

from __future__ import annotations

from tokenapi.repositories.base import BaseRepository
from tokenapi.repositories.user import RoleRepository, UserRepository

__all__ = ["BaseRepository", "RoleRepository", "UserRepository"]
