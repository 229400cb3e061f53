"""
Domain layer for the gateway: request/response value objects, path
allowlists and the proxy pipeline itself.
"""
