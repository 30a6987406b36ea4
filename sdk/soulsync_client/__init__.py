"""Python SDK for the SoulSync matching API"""
from soulsync_client.client import AuthenticationRequired, SoulSyncClient, SoulSyncClientError

__all__ = ["SoulSyncClient", "SoulSyncClientError", "AuthenticationRequired"]
__version__ = "0.1.0"
