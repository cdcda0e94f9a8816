"""API DTOs - request and response models."""
