"""HTTP API: validation, step generation and streamed simulation playback."""
