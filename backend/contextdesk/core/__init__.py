"""Core module - conversation pipeline, context assembly and shared infrastructure."""
