"""browser-session - a persistent browser driven by line-delimited JSON commands."""
