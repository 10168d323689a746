"""Shared configuration for the design solver."""
