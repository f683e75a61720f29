"""Services for StudentBox application."""
