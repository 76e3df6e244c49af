from afsdk.clients.gateway import ArweaveGatewayClient, GatewayClient
from afsdk.clients.graphql import GraphQLResponseError, GraphQLTransport

__all__ = [
    "ArweaveGatewayClient",
    "GatewayClient",
    "GraphQLResponseError",
    "GraphQLTransport",
]
