"""n8n Transport Layer - Module Exports"""

from .sender import ForwardError, ForwardResult, Forwarder, encode_payload

__all__ = ["Forwarder", "ForwardResult", "ForwardError", "encode_payload"]
