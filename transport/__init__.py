"""Transport layer: Discord in, n8n out, signed image links."""
