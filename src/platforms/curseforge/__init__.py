"""CurseForge upload API, public read API and uploader."""
