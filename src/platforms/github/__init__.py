"""GitHub Releases client and uploader."""
