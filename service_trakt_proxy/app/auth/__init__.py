"""
Authentication helpers for the gateway.
"""

from service_trakt_proxy.app.auth.shared_secret import SharedSecretAuthenticator

__all__ = ["SharedSecretAuthenticator"]
