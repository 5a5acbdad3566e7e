"""
API Gateway integration for the deadline engine
"""

from .api_gateway_integration import APIGatewayHandler, lambda_handler

__all__ = [
    'APIGatewayHandler',
    'lambda_handler'
]
