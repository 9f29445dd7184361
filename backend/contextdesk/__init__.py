"""ContextDesk backend package."""
