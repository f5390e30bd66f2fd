# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Errors raised by the network collaborators.
"""


class ServiceError(Exception):
    """A network collaborator call failed."""
    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class BroadcastError(ServiceError):
    """Broadcasting the signed transaction failed. Never retried automatically."""
    def __init__(self, message: str):
        super().__init__("broadcast", message)


class PaymentTimeout(Exception):
    """No payment reached the intermediate address before the configured timeout."""
