from __future__ import annotations

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_ACCEPT_HEADER = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"

# Labels whose names start with this are dropped once a topic reaches a resolution
# ("Agenda+", "Agenda+ F2F", "Agenda+ TPAC", ...).
AGENDA_LABEL_PREFIX = "Agenda+"
