"""HTTP routers. Each router is a thin controller over a domain service."""
