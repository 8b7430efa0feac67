"""
Prompt Gateway Routes

Route Modules:
- enhance: POST /enhance and the /sse lifecycle event stream (web mode)
- mcp_remote: remote MCP handshake stream and JSON-RPC messages (remote-mcp mode)
- health: health, service info and model listing (both modes)
"""
