"""Transport integrations (IRC, GitHub)."""
