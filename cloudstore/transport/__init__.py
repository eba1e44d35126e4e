"""HTTP transport for the Google Drive v3 API."""
