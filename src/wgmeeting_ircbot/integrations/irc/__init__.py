"""IRC integration: wire protocol, outbound chunking, client and bot service."""
